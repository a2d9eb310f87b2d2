"""
ドキュメントの本文とURLフラグメント（#以降）に埋め込むトークンを相互変換するモジュール。

トークンはUTF-8の本文をzlib形式（pako.deflateと同じ）で圧縮し、base64にしたもの。
base64の文字（A-Z a-z 0-9 + / =）はすべてフラグメントにそのまま置ける。
"""

import base64
import binascii
import re
import zlib
from urllib.parse import unquote
from ..errors import DecodeError

_COMMENT_LINE = re.compile(r"^\s*#")

# 復元後の本文の上限（バイト）。これを超えるトークンは展開しきる前に拒否する
MAX_SOURCE_BYTES = 1024 * 1024


def encode(text: str) -> str:
    compressed = zlib.compress(text.encode("utf-8"))
    return base64.b64encode(compressed).decode("ascii")


def decode(token: str) -> str:
    """
    トークンを本文に戻す。

    Args:
        token (str): パーマリンクのトークン（先頭の#やパーセントエンコードは許容する）

    Returns:
        str: 復元した本文

    Raises:
        DecodeError: base64・zlib・UTF-8のいずれかとして不正な場合、または本文がMAX_SOURCE_BYTESを超える場合
    """
    token = unquote(token.removeprefix("#")).strip()
    try:
        compressed = base64.b64decode(token, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"permalink is not valid base64: {e}") from e
    d = zlib.decompressobj()
    try:
        data = d.decompress(compressed, MAX_SOURCE_BYTES + 1)
    except zlib.error as e:
        raise DecodeError(f"permalink is not valid compressed data: {e}") from e
    if len(data) > MAX_SOURCE_BYTES or d.unconsumed_tail:
        raise DecodeError(f"permalink source is larger than {MAX_SOURCE_BYTES} bytes")
    if not d.eof:
        raise DecodeError("permalink is not valid compressed data: incomplete or truncated stream")
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"permalink is not valid UTF-8: {e}") from e


def permalink_url(text: str, base_url: str) -> str:
    base = base_url.split("#", 1)[0]
    return f"{base}#{encode(text)}"


def strip_comment_lines(text: str) -> str:
    """コメントだけの行を取り除く。URLを短くするため"""
    lines = [l for l in text.strip().split("\n") if not _COMMENT_LINE.match(l)]
    return "\n".join(lines)
