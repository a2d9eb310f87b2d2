"""
セッション開始時のドキュメント本文を決めるモジュール。

優先順位: クエリの s（本文そのもの） > u（リモートURL） > URLフラグメント（パーマリンク） > サンプル
u とフラグメントの取得に失敗した場合はエラーにせず、次の候補に進む。
"""

import asyncio
import re
from typing import Mapping, Sequence
from urllib.parse import urlsplit, urlunsplit
import requests
from pydantic import BaseModel
from ..config import FETCH_TIMEOUT
from ..errors import DecodeError, FetchError
from ..log_output.log import log
from ..session.state import DocumentKind, ResolvedSource, SourceOrigin
from . import permalink

_GIST_ID = re.compile(r"/[0-9a-f]+$")

# リモートソースとして取得してよいスキームと、HTTPサーバーで許可するホスト
REMOTE_SCHEMES = ("http", "https")
REMOTE_HOSTS = (
    "github.com",
    "gist.github.com",
    "raw.githubusercontent.com",
    "gist.githubusercontent.com",
)

WORKFLOW_SAMPLE = """# Paste your workflow YAML to this code editor

on:
  push:
    branch: main
    tags:
      - 'v\\d+'

jobs:
  test:
    strategy:
      matrix:
        os: [macos-latest, linux-latest]
    runs-on: ${{ matrix.os }}
    steps:
      - uses: actions/checkout@v2
      - uses: actions/cache@v2
        with:
          path: ~/.npm
          key: ${{ matrix.platform }}-node-${{ hashFiles('**/package-lock.json') }}
        if: ${{ github.repository.permissions.admin == true }}
      - run: npm install && npm test"""

ACTION_SAMPLE = """# Paste your action metadata (action.yml) to this code editor

name: 'My action'
author: 'me'
description: 'Greet someone'
inputs:
  who-to-greet:
    description: 'Who to greet'
    required: true
    default: 'World'
outputs:
  random-number:
    description: 'Random number'
    value: ${{ steps.random-number-generator.outputs.random-id }}
runs:
  using: 'composite'
  steps:
    - run: echo Hello ${{ inputs.who-to-greet }}.
    - id: random-number-generator
      run: echo "random-id=$RANDOM" >> $GITHUB_OUTPUT"""


def default_source(kind: DocumentKind = DocumentKind.WORKFLOW) -> str:
    return ACTION_SAMPLE if kind == DocumentKind.ACTION else WORKFLOW_SAMPLE


def normalize_remote(url: str) -> str:
    """
    リポジトリのblob URLやGistのURLを、本文をそのまま取得できるraw URLに変換する。
    どちらにも当てはまらないURL（URLとして解析できない文字列を含む）はそのまま返す。

    例:
        https://github.com/o/r/blob/main/p/f.yml -> https://raw.githubusercontent.com/o/r/main/p/f.yml
        https://gist.github.com/u/0123abcd -> https://gist.githubusercontent.com/u/0123abcd/raw
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return url

    # /owner/repo/blob/branch/path/to を /owner/repo/branch/path/to に変換
    if parts.netloc == "github.com":
        s = parts.path.split("/blob/")
        if len(s) == 2:
            return urlunsplit(parts._replace(netloc="raw.githubusercontent.com", path="/".join(s)))

    if parts.netloc == "gist.github.com" and _GIST_ID.search(parts.path):
        return urlunsplit(parts._replace(netloc="gist.githubusercontent.com", path=parts.path + "/raw"))

    return url


class SourceResolver:
    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = FETCH_TIMEOUT,
        allowed_hosts: Sequence[str] | None = None,
    ):
        """
        SourceResolverのインスタンスを初期化する。

        Args:
            session (requests.Session|None): HTTP通信に使うセッション（未指定なら新規作成）
            timeout (float): リモートソース取得のタイムアウト（秒）
            allowed_hosts (Sequence[str]|None): 取得を許可するホスト（raw URLへの変換後に判定する。Noneなら制限しない）
        """
        self.session = session or requests.Session()
        self.timeout = timeout
        self.allowed_hosts = tuple(allowed_hosts) if allowed_hosts is not None else None

    def fetch_remote(self, url: str) -> str:
        """
        URLの本文を取得する。GitHubやGistのURLは事前にraw URLへ変換する。

        Args:
            url (str): 取得したいURL

        Returns:
            str: 前後の空白を取り除いた本文

        Raises:
            FetchError: http(s)以外のURLや許可されていないホストの場合、接続に失敗した場合、
                またはレスポンスが成功でなかった場合
        """
        target = normalize_remote(url)
        self._check_target(url, target)
        log("info", f"{target} からソースを取得します")
        try:
            resp = self.session.get(target, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(url, None, str(e)) from e
        if not resp.ok:
            raise FetchError(url, resp.status_code, resp.reason or "")
        return resp.text.strip()

    def _check_target(self, url: str, target: str) -> None:
        try:
            parts = urlsplit(target)
            host = parts.hostname
        except ValueError as e:
            raise FetchError(url, None, f"invalid URL: {e}") from e
        if parts.scheme.lower() not in REMOTE_SCHEMES or not host:
            raise FetchError(url, None, "only http and https URLs can be fetched")
        if self.allowed_hosts is not None and host not in self.allowed_hosts:
            log("warning", f"許可されていないホスト {host} への取得を拒否しました")
            raise FetchError(url, None, f"fetching from host {host} is not allowed")

    async def afetch_remote(self, url: str) -> str:
        return await asyncio.to_thread(self.fetch_remote, url)

    async def resolve_initial(self, query_params: Mapping[str, str], fragment: str = "") -> ResolvedSource:
        """
        クエリパラメータとURLフラグメントから初期ソースを決める。
        失敗しても例外は送出せず、最後はサンプルにフォールバックする。

        Args:
            query_params (Mapping[str, str]): s, u, kind を含み得るクエリパラメータ
            fragment (str): URLの#以降（パーマリンクのトークン）

        Returns:
            ResolvedSource: 本文、種類、取得元
        """
        kind = DocumentKind.parse(query_params.get("kind"))

        s = query_params.get("s")
        if s is not None:
            log("info", "クエリパラメータ s のソースを使います")
            return ResolvedSource(text=s, kind=kind, origin=SourceOrigin.INLINE)

        u = query_params.get("u")
        if u is not None:
            try:
                text = await self.afetch_remote(u)
                return ResolvedSource(text=text, kind=kind, origin=SourceOrigin.REMOTE)
            except FetchError as e:
                log("warning", f"リモートソースの取得に失敗したため次の候補に進みます: {e}")

        token = (fragment or "").removeprefix("#")
        if token:
            try:
                text = permalink.decode(token)
                return ResolvedSource(text=text, kind=kind, origin=SourceOrigin.PERMALINK)
            except DecodeError as e:
                log("warning", f"パーマリンクを復元できなかったため次の候補に進みます: {e}")

        log("info", f"サンプルのソース（{kind.value}）を使います")
        return ResolvedSource(text=default_source(kind), kind=kind, origin=SourceOrigin.SAMPLE)


class SourceResult(BaseModel):
    status: str
    message: str | None = None
    text: str | None = None


def check_url(url: str, resolver: SourceResolver | None = None) -> SourceResult:
    """
    ユーザーが入力したURLを取得し、結果をSourceResultで返す（HTTPサーバー用）。

    Returns:
        SourceResult:
            status (str): "success" または "error"
            message (str|None): 実行結果の説明メッセージ
            text (str|None): 取得した本文（成功時のみ）
    """
    resolver = resolver or SourceResolver()
    try:
        text = resolver.fetch_remote(url)
        result = SourceResult(status="success", message=f"{url}を取得しました", text=text)
    except FetchError as e:
        result = SourceResult(status="error", message=f'Incorrect input "{url}": {e}', text=None)
    log(result.status, result.message)
    return result
