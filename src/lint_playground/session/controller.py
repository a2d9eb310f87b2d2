"""
lintセッションの状態を管理するモジュール。

編集のたびにエンジンを呼ぶのではなく、編集が止まってからdebounce間隔の後に1回だけ呼ぶ。
エンジン呼び出しには世代番号を付け、後から発行したリクエストがある場合は古い結果を捨てる。

状態遷移:
    bootstrapping -> idle        エンジンの準備完了（on_ready）
    idle/debouncing -> debouncing 編集（タイマーを張り直す）
    idle/debouncing -> requesting 貼り付け、またはタイマー満了
    requesting -> idle           最新リクエストの結果が届いた
"""

from typing import Mapping, Sequence
from ..config import PlaygroundConfig, load_config
from ..errors import FetchError
from ..log_output.log import log
from ..tools import permalink
from ..tools.source import SourceResolver
from .bridge import AsyncioScheduler, EngineBridge, Scheduler, TimerHandle
from .renderer import Renderer
from .state import Diagnostic, DocumentKind, SessionState, SourceOrigin

NOT_READY_MESSAGE = "Preparing the lint engine is not completed yet. Please wait for a while and try again."

# 貼り付けはまとまった変更なのでdebounceせずにすぐlintする
PASTE_ORIGIN = "paste"


class LintSessionController:
    def __init__(
        self,
        bridge: EngineBridge,
        renderer: Renderer,
        resolver: SourceResolver | None = None,
        scheduler: Scheduler | None = None,
        config: PlaygroundConfig | None = None,
        mobile: bool = False,
    ):
        """
        LintSessionControllerのインスタンスを初期化する。

        Args:
            bridge (EngineBridge): lintエンジンの呼び出し口
            renderer (Renderer): 結果の表示先
            resolver (SourceResolver|None): 初期ソースの取得に使う（未指定なら新規作成）
            scheduler (Scheduler|None): debounceタイマーの作成に使う（未指定ならasyncioのタイマー）
            config (PlaygroundConfig|None): 設定（未指定なら環境変数から読み込む）
            mobile (bool): モバイル端末ならTrue（debounce間隔が長くなる）
        """
        self.bridge = bridge
        self.renderer = renderer
        self.config = config or load_config()
        self.resolver = resolver or SourceResolver(timeout=self.config.fetch_timeout)
        self.scheduler = scheduler or AsyncioScheduler()
        self.debounce_interval = self.config.debounce_seconds(mobile)

        self.state = SessionState.BOOTSTRAPPING
        self.document = ""
        self.kind = DocumentKind.WORKFLOW
        self.origin: SourceOrigin | None = None
        self.generation = 0
        self.content_changed = False
        self._timer: TimerHandle | None = None

    @property
    def has_unsaved_changes(self) -> bool:
        return self.content_changed

    async def start(self, query_params: Mapping[str, str] | None = None, fragment: str = "") -> None:
        """
        初期ソースを決めてドキュメントに設定し、エンジンに接続する。

        Args:
            query_params (Mapping[str, str]|None): s, u, kind を含み得るクエリパラメータ
            fragment (str): URLの#以降（パーマリンクのトークン）
        """
        self.state = SessionState.BOOTSTRAPPING
        resolved = await self.resolver.resolve_initial(query_params or {}, fragment)
        self.document = resolved.text
        self.kind = resolved.kind
        self.origin = resolved.origin
        log("info", f"セッションを開始します（取得元: {resolved.origin.value}, 種類: {resolved.kind.value}）")
        await self.bridge.attach(self)
        if self.bridge.is_ready():
            self.on_ready()

    def on_change(self, text: str, origin: str = "+input") -> None:
        """
        エディタの内容が変更されたときに呼ぶ。

        Args:
            text (str): 変更後のドキュメント全体
            origin (str): 変更の種類（"paste"ならdebounceせずにすぐlintする）
        """
        self.document = text
        self.content_changed = True

        if not self.bridge.is_ready():
            self.renderer.show_error(NOT_READY_MESSAGE)
            return

        self._cancel_timer()

        if origin == PASTE_ORIGIN:
            self._request()
            return

        self._timer = self.scheduler.call_later(self.debounce_interval, self._on_timer)
        self.state = SessionState.DEBOUNCING

    def set_kind(self, kind: DocumentKind) -> None:
        """ドキュメントの種類を切り替え、準備ができていればすぐにlintし直す"""
        self.kind = kind
        if self.bridge.is_ready():
            self._cancel_timer()
            self._request()

    async def load_from_url(self, url: str) -> bool:
        """
        ユーザーが入力したURLの内容でドキュメントを置き換える。
        失敗した場合はエラーを表示し、ドキュメントは変更しない。

        Returns:
            bool: 置き換えた場合True
        """
        try:
            text = await self.resolver.afetch_remote(url)
        except FetchError as e:
            self.renderer.show_error(f'Incorrect input "{url}": {e}')
            return False
        self.on_change(text, origin="setValue")
        self.content_changed = False
        return True

    def share_url(self) -> str:
        return permalink.permalink_url(self.document, self.config.base_url)

    def close(self) -> None:
        self._cancel_timer()

    # ------------------------------------------------------------------
    # エンジンから呼ばれるフック
    # ------------------------------------------------------------------

    def get_document_text(self) -> str:
        return self.document

    def get_document_kind(self) -> DocumentKind:
        return self.kind

    def on_ready(self) -> None:
        if self.state != SessionState.BOOTSTRAPPING:
            return
        self.state = SessionState.IDLE
        self.renderer.dismiss_loading()
        log("success", "lintエンジンの準備が完了しました")

    def on_check_completed(self, diagnostics: Sequence[Diagnostic]) -> None:
        """
        世代番号の付いていない結果（エンジンが自分でドキュメントを取得してlintした結果）を受け取る。
        世代0（エンジン接続時の最初のlint）としてだけ扱い、一度でもリクエストを発行した後や
        debounce中に届いたものは、より新しい結果を上書きしないように捨てる。
        """
        if self.generation != 0 or self._timer is not None or self.state == SessionState.REQUESTING:
            log("debug", "世代番号なしの結果を破棄しました")
            return
        self._render(diagnostics)

    def show_error(self, message: str) -> None:
        """エンジンの失敗を表示する。リクエスト中であればそのリクエストは終わったものとして扱う"""
        if self.state == SessionState.REQUESTING:
            self.state = SessionState.IDLE
        self.renderer.show_error(message)

    # ------------------------------------------------------------------

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        self._request()

    def _request(self) -> None:
        self.generation += 1
        generation = self.generation
        self.state = SessionState.REQUESTING
        self.renderer.clear()
        log("debug", f"lintを開始します（世代: {generation}）")

        def on_completed(diagnostics: Sequence[Diagnostic]) -> None:
            self._on_completed(generation, diagnostics)

        try:
            self.bridge.run_lint(self.document, self.kind, on_completed)
        except Exception as e:
            self.state = SessionState.IDLE
            self.renderer.show_error(f"{e} on applying lint rules")

    def _on_completed(self, generation: int, diagnostics: Sequence[Diagnostic]) -> None:
        if generation != self.generation:
            log("debug", f"古い結果を破棄しました（世代: {generation}, 最新: {self.generation}）")
            return
        # 結果待ちの間に次の編集でタイマーが張られていればdebouncingのまま
        if self.state == SessionState.REQUESTING:
            self.state = SessionState.IDLE
        self._render(diagnostics)

    def _render(self, diagnostics: Sequence[Diagnostic]) -> None:
        diagnostics = list(diagnostics)
        if not diagnostics:
            self.renderer.show_success()
            return
        self.renderer.show_diagnostics(diagnostics)
