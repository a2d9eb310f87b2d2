import base64
import zlib
import pytest
from lint_playground.errors import DecodeError
from lint_playground.tools.permalink import MAX_SOURCE_BYTES, decode, encode, permalink_url, strip_comment_lines


@pytest.mark.parametrize(
    "text",
    [
        "",
        "on: push\njobs:\n  test:\n    runs-on: ubuntu-latest\n",
        "name: 日本語のワークフロー 🚀\non: [push]",
        "x" * 10000,
    ],
)
def test_decode_restores_encoded_text(text):
    assert decode(encode(text)) == text


def test_encode_is_deterministic_and_fragment_safe():
    token = encode("on: push")
    assert token == encode("on: push")
    assert all(c.isalnum() or c in "+/=" for c in token)


def test_decode_accepts_pako_output():
    # pako.deflate と同じzlib形式（ヘッダ付き）
    token = base64.b64encode(zlib.compress("on: push".encode("utf-8"), 6)).decode("ascii")
    assert decode(token) == "on: push"


def test_decode_accepts_leading_hash_and_percent_encoding():
    token = encode("on: workflow_dispatch")
    assert decode("#" + token) == "on: workflow_dispatch"
    assert decode(token.replace("+", "%2B").replace("/", "%2F").replace("=", "%3D")) == "on: workflow_dispatch"


@pytest.mark.parametrize(
    "token",
    [
        "",
        "not base64!!",
        base64.b64encode(b"plain text, not compressed").decode("ascii"),
        base64.b64encode(zlib.compress(b"\xff\xfe\xfa")).decode("ascii"),
    ],
)
def test_decode_rejects_malformed_token(token):
    with pytest.raises(DecodeError):
        decode(token)


def test_decode_accepts_source_at_size_limit():
    assert len(decode(encode("x" * MAX_SOURCE_BYTES))) == MAX_SOURCE_BYTES


def test_decode_rejects_oversized_source():
    # 数十KBのトークンでも展開後が上限を超えるなら拒否する
    token = encode("x" * (MAX_SOURCE_BYTES * 8))
    assert len(token) < MAX_SOURCE_BYTES // 10
    with pytest.raises(DecodeError, match="larger than"):
        decode(token)


def test_decode_rejects_truncated_stream():
    compressed = zlib.compress("on: push\njobs: {}\n".encode("utf-8"))
    token = base64.b64encode(compressed[:-6]).decode("ascii")
    with pytest.raises(DecodeError):
        decode(token)


def test_permalink_url():
    url = permalink_url("on: push", "https://example.com/playground/")
    base, token = url.split("#", 1)
    assert base == "https://example.com/playground/"
    assert decode(token) == "on: push"


def test_permalink_url_replaces_existing_fragment():
    url = permalink_url("on: push", "https://example.com/#old")
    assert url == "https://example.com/#" + encode("on: push")


def test_strip_comment_lines():
    src = "# Paste your workflow\non: push\n  # indented comment\njobs: {} # trailing comment\n"
    assert strip_comment_lines(src) == "on: push\njobs: {} # trailing comment"
