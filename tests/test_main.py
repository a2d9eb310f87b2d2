import io
import json
import subprocess
import time
from lint_playground.main import main
from lint_playground.parsing.diagnostic_format import problem_matcher
from lint_playground.tools.permalink import decode


def test_matcher_stdout(capsys):
    assert main(["matcher"]) == 0
    assert json.loads(capsys.readouterr().out) == problem_matcher()


def test_matcher_file(tmp_path, capsys):
    path = tmp_path / "actionlint-matcher.json"
    assert main(["matcher", str(path)]) == 0
    assert json.loads(path.read_text(encoding="utf-8")) == problem_matcher()
    assert capsys.readouterr().out.strip() == f"Wrote to {path}"


def test_scan_stdin(monkeypatch, capsys):
    log = "Run actionlint\n\x1b[1mci.yml\x1b[0m:2:5: unknown event [events]\ndone\n"
    monkeypatch.setattr("sys.stdin", io.StringIO(log))
    assert main(["scan", "--plain", "--fail"]) == 1
    assert capsys.readouterr().out == "ci.yml:2:5: unknown event [events]\n"


def test_scan_json(tmp_path, capsys):
    path = tmp_path / "out.txt"
    path.write_text("ci.yml:2:5: unknown event [events]\n", encoding="utf-8")
    assert main(["scan", str(path)]) == 0
    line = json.loads(capsys.readouterr().out)
    assert line == {"path": "ci.yml", "line": 2, "column": 5, "message": "unknown event", "kind": "events"}


def test_permalink(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("# comment\non: push\n"))
    assert main(["permalink", "--base-url", "https://example.com/"]) == 0
    base, token = capsys.readouterr().out.strip().split("#", 1)
    assert base == "https://example.com/"
    assert decode(token) == "on: push"


def test_check(monkeypatch, tmp_path, capsys):
    output = json.dumps([{"message": "unknown Webhook event \"foo\"", "line": 2, "column": 5, "kind": "events"}])

    def run(cmd, **kwargs):
        if "-version" in cmd:
            return subprocess.CompletedProcess(cmd, 0, "1.7.7\n", "")
        return subprocess.CompletedProcess(cmd, 1, output, "")

    monkeypatch.setattr(subprocess, "run", run)
    src = tmp_path / "ci.yml"
    src.write_text("on: foo\n", encoding="utf-8")
    assert main(["check", "--source", str(src), "--path", "ci.yml"]) == 1
    assert capsys.readouterr().out == 'ci.yml:2:5: unknown Webhook event "foo" [events]\n'


def test_check_returns_on_engine_error_without_waiting(monkeypatch, tmp_path):
    def run(cmd, **kwargs):
        if "-version" in cmd:
            return subprocess.CompletedProcess(cmd, 0, "1.7.7\n", "")
        return subprocess.CompletedProcess(cmd, 2, "", "invalid option")

    monkeypatch.setattr(subprocess, "run", run)
    src = tmp_path / "ci.yml"
    src.write_text("on: push\n", encoding="utf-8")
    started = time.monotonic()
    assert main(["check", "--source", str(src), "--timeout", "30"]) == 2
    assert time.monotonic() - started < 5
