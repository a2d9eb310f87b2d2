import pytest
from fastapi.testclient import TestClient
from conftest import FakeResponse, FakeSession
from lint_playground.server.playground_api import create_app
from lint_playground.tools.permalink import decode, encode
from lint_playground.tools.source import SourceResolver, WORKFLOW_SAMPLE

RAW_URL = "https://raw.githubusercontent.com/o/r/main/ci.yml"


@pytest.fixture
def session():
    return FakeSession({
        RAW_URL: FakeResponse(text="on: push\n"),
        "https://example.com/missing.yml": FakeResponse(status_code=404, reason="Not Found"),
    })


@pytest.fixture
def client(session, config):
    return TestClient(create_app(resolver=SourceResolver(session=session), config=config))


def test_source_inline(client):
    res = client.get("/source", params={"s": "A", "fragment": encode("B")})
    assert res.status_code == 200
    data = res.json()
    assert data["text"] == "A"
    assert data["origin"] == "inline"
    assert data["kind"] == "workflow"


def test_source_remote(client):
    res = client.get("/source", params={"u": "https://github.com/o/r/blob/main/ci.yml"})
    assert res.json()["text"] == "on: push"
    assert res.json()["origin"] == "remote"


def test_source_falls_back_to_sample(client):
    res = client.get("/source", params={"u": "https://example.com/missing.yml", "fragment": "broken!!"})
    data = res.json()
    assert data["status"] == "success"
    assert data["origin"] == "sample"
    assert data["text"] == WORKFLOW_SAMPLE


def test_permalink(client):
    res = client.post("/permalink", json={"text": "on: push"})
    data = res.json()
    assert data["status"] == "success"
    assert decode(data["token"]) == "on: push"
    assert data["url"] == "https://example.com/playground/#" + data["token"]


def test_decode(client):
    assert client.post("/decode", json={"token": encode("on: push")}).json()["text"] == "on: push"
    data = client.post("/decode", json={"token": "broken!!"}).json()
    assert data["status"] == "error"
    assert data["text"] is None


def test_fetch_error_is_reported(client):
    data = client.post("/fetch", json={"url": "https://example.com/missing.yml"}).json()
    assert data["status"] == "error"
    assert "404" in data["message"]
    assert "Not Found" in data["message"]


def test_fetch_success(client):
    data = client.post("/fetch", json={"url": "https://github.com/o/r/blob/main/ci.yml"}).json()
    assert data["status"] == "success"
    assert data["text"] == "on: push"


def test_matcher(client):
    data = client.get("/matcher").json()
    assert data["problemMatcher"][0]["owner"] == "actionlint"


def test_scan(client):
    output = "Run actionlint\nci.yml:2:5: unknown Webhook event \"foo\" [events]\nError: exit 1\n"
    data = client.post("/scan", json={"output": output}).json()
    assert data["status"] == "success"
    assert data["diagnostics"] == [
        {"path": "ci.yml", "line": 2, "column": 5, "message": 'unknown Webhook event "foo"', "kind": "events"}
    ]


def test_default_app_only_fetches_github_hosts(config):
    # 既定のアプリはGitHub・Gist以外のホストには接続しない
    client = TestClient(create_app(config=config))
    url = "http://169.254.169.254/latest/meta-data"
    data = client.post("/fetch", json={"url": url}).json()
    assert data["status"] == "error"
    assert "not allowed" in data["message"]

    data = client.get("/source", params={"u": url}).json()
    assert data["origin"] == "sample"
    assert data["text"] == WORKFLOW_SAMPLE

    data = client.post("/fetch", json={"url": "file:///etc/passwd"}).json()
    assert data["status"] == "error"
