"""
FastAPIを用いたplayground用APIのサーバー側実装。
ブラウザのフロントエンドから、初期ソースの決定・パーマリンクの作成・URLの取得などを呼び出す。

`/source?u=` と `/fetch` はサーバーからURLを取得するので、既定ではhttp(s)のGitHub・Gistのホスト
（REMOTE_HOSTS）だけを許可する。別のホストを許可したい場合はSourceResolverを渡してcreate_appを呼ぶ。

起動例:
    uvicorn lint_playground.server.playground_api:app --host 127.0.0.1 --port 8000
"""
from fastapi import FastAPI
from pydantic import BaseModel, Field
from ..config import PlaygroundConfig, load_config
from ..errors import DecodeError
from ..log_output.log import log
from ..parsing import diagnostic_format
from ..parsing.diagnostic_format import DiagnosticLine
from ..session.state import DocumentKind, SourceOrigin
from ..tools import permalink
from ..tools.source import REMOTE_HOSTS, SourceResolver, SourceResult, check_url


class SourceResponse(BaseModel):
    status: str
    text: str
    kind: DocumentKind
    origin: SourceOrigin

class PermalinkRequest(BaseModel):
    text: str = Field(..., description="共有したいドキュメントの本文")

class PermalinkResponse(BaseModel):
    status: str
    token: str
    url: str

class FetchRequest(BaseModel):
    url: str = Field(..., description="ソースを取得したいURL（GitHubのblob URLやGistのURLも可）")

class DecodeRequest(BaseModel):
    token: str = Field(..., description="パーマリンクのトークン（URLの#以降）")

class ScanRequest(BaseModel):
    output: str = Field(..., description="actionlintの出力を含むログ")

class ScanResponse(BaseModel):
    status: str
    diagnostics: list[DiagnosticLine]


def create_app(resolver: SourceResolver | None = None, config: PlaygroundConfig | None = None) -> FastAPI:
    """
    playground用APIのFastAPIアプリを作成する。

    Args:
        resolver (SourceResolver|None): ソースの取得に使う（未指定ならREMOTE_HOSTSだけを許可して新規作成）
        config (PlaygroundConfig|None): 設定（未指定なら環境変数から読み込む）

    Returns:
        FastAPI: アプリ
    """
    config = config or load_config()
    resolver = resolver or SourceResolver(timeout=config.fetch_timeout, allowed_hosts=REMOTE_HOSTS)
    app = FastAPI(title="actionlint playground")

    @app.get("/source", response_model=SourceResponse)
    async def resolve_source(s: str | None = None, u: str | None = None, kind: str | None = None, fragment: str = ""):
        """
        セッション開始時のソースを決める。取得に失敗してもサンプルにフォールバックする。
        """
        params = {k: v for k, v in {"s": s, "u": u, "kind": kind}.items() if v is not None}
        resolved = await resolver.resolve_initial(params, fragment)
        return SourceResponse(status="success", text=resolved.text, kind=resolved.kind, origin=resolved.origin)

    @app.post("/permalink", response_model=PermalinkResponse)
    def create_permalink(req: PermalinkRequest):
        token = permalink.encode(req.text)
        return PermalinkResponse(status="success", token=token, url=permalink.permalink_url(req.text, config.base_url))

    @app.post("/decode", response_model=SourceResult)
    def decode_permalink(req: DecodeRequest):
        try:
            text = permalink.decode(req.token)
        except DecodeError as e:
            result = SourceResult(status="error", message=str(e), text=None)
            log(result.status, result.message)
            return result
        return SourceResult(status="success", message="パーマリンクを復元しました", text=text)

    @app.post("/fetch", response_model=SourceResult)
    def fetch_source(req: FetchRequest):
        """
        ユーザーが入力したURLのソースを取得する。失敗した場合はstatus="error"とHTTPステータスを返す。
        """
        return check_url(req.url, resolver)

    @app.get("/matcher")
    def get_matcher():
        return diagnostic_format.problem_matcher()

    @app.post("/scan", response_model=ScanResponse)
    def scan_output(req: ScanRequest):
        diagnostics = list(diagnostic_format.scan(req.output.splitlines()))
        log("info", f"ログから{len(diagnostics)}件のエラー行を取り出しました")
        return ScanResponse(status="success", diagnostics=diagnostics)

    return app


app = create_app()
