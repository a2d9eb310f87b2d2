"""
actionlintが標準出力に書くエラー行（`path:line:col: message [kind]`）の書式を扱うモジュール。

同じ正規表現をPythonのreとGitHub Actionsのproblem matcher（JavaScriptのRegExp）の
両方で使うため、両者に共通する構文だけで書くこと。
フィールドの順序や区切り文字の変更はproblem matcherを使う側にとって破壊的変更になる。
"""

import re
from typing import Iterable, Iterator
from pydantic import BaseModel, Field
from ..session.state import Diagnostic

# ANSIカラーのエスケープシーケンス（端末に出力するときだけ付く）
ESCAPE = r"(?:\x1b\[\d+m)"
FILEPATH = r"(.+?)"
LINE = r"(\d+)"
COL = r"(\d+)"
MESSAGE = r"(.+?)"
KIND = r"\[([^\]]+)\]"

E = f"{ESCAPE}*"
PATTERN = f"^{E}{FILEPATH}{E}:{E}{LINE}{E}:{E}{COL}{E}: {E}{MESSAGE}{E} {E}{KIND}{E}$"
REGEXP = re.compile(PATTERN)

_ESCAPE_RE = re.compile(ESCAPE)
# ファイルパスにこの並びがあると、解析時にパスがその手前で切れてしまう
_AMBIGUOUS_PATH = re.compile(r":\d+:\d+: ")

# actionlintの端末出力と同じ装飾
BOLD = "\x1b[1m"
GRAY = "\x1b[90m"
RESET = "\x1b[0m"


class DiagnosticLine(BaseModel):
    """エラー行から取り出した5つのフィールド"""
    path: str = Field(..., min_length=1)
    line: int = Field(..., ge=1)
    column: int = Field(..., ge=1)
    message: str = Field(..., min_length=1)
    kind: str = Field(..., min_length=1)

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(line=self.line, column=self.column, message=self.message, kind=self.kind)


def strip_escapes(text: str) -> str:
    return _ESCAPE_RE.sub("", text)


def generate(diagnostic: Diagnostic, file_path: str, colored: bool = False) -> str:
    """
    Diagnosticを1行のテキストに変換する。

    Args:
        diagnostic (Diagnostic): 変換するエラー
        file_path (str): 行の先頭に出すファイルパス（空文字・改行・エスケープシーケンス・":数字:数字: "を含むものは不可）
        colored (bool): Trueならactionlintの端末出力と同じ色付けをする

    Returns:
        str: `path:line:col: message [kind]` 形式の行
    """
    if not file_path or "\n" in file_path or "\r" in file_path:
        raise ValueError(f"file_path must be a non-empty single line: {file_path!r}")
    if "\x1b" in file_path or _AMBIGUOUS_PATH.search(file_path):
        raise ValueError(f"file_path cannot be parsed back from the generated line: {file_path!r}")
    d = diagnostic
    if not colored:
        return f"{file_path}:{d.line}:{d.column}: {d.message} [{d.kind}]"
    return (
        f"{BOLD}{file_path}{RESET}:{GRAY}{d.line}{RESET}:{GRAY}{d.column}{RESET}: "
        f"{BOLD}{d.message}{RESET} {GRAY}[{d.kind}]{RESET}"
    )


def match(line: str) -> DiagnosticLine | None:
    """
    1行をエラー行として解析する。エラー行でなければNoneを返す。

    Args:
        line (str): 解析する行（末尾の改行はあってもよい）

    Returns:
        DiagnosticLine | None: 取り出したフィールド
    """
    m = REGEXP.match(line.rstrip("\r\n"))
    if m is None:
        return None
    path, line_no, col, message, kind = m.groups()
    # 0行目・0列目は存在しない
    if int(line_no) < 1 or int(col) < 1:
        return None
    return DiagnosticLine(path=path, line=int(line_no), column=int(col), message=message, kind=kind)


def scan(lines: Iterable[str]) -> Iterator[DiagnosticLine]:
    """ログの各行からエラー行だけを取り出す。それ以外の行は黙って読み飛ばす"""
    for line in lines:
        m = match(line)
        if m is not None:
            yield m


def problem_matcher(owner: str = "actionlint") -> dict:
    """
    GitHub Actionsのproblem matcher定義を返す。
    `echo "::add-matcher::actionlint-matcher.json"` で登録して使う。
    """
    return {
        "problemMatcher": [
            {
                "owner": owner,
                "pattern": [
                    {
                        "regexp": PATTERN,
                        "file": 1,
                        "line": 2,
                        "column": 3,
                        "message": 4,
                        "code": 5,
                    }
                ],
            }
        ]
    }
