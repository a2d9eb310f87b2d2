"""
lint結果を表示する側（ブラウザのUIなど）のインターフェースと、結果を記録するだけの実装。
"""

import asyncio
from typing import Protocol, Sequence
from ..errors import EngineError
from ..log_output.log import log
from .state import Diagnostic


class Renderer(Protocol):
    def clear(self) -> None: ...

    def show_success(self) -> None: ...

    def show_diagnostics(self, diagnostics: Sequence[Diagnostic]) -> None: ...

    def show_error(self, message: str) -> None: ...

    def dismiss_loading(self) -> None: ...


class CollectingRenderer:
    """
    表示内容を属性に保持するRenderer。CLIとテストで使う。

    diagnosticsは最後に表示したエラー一覧で、clear()でNoneに戻る。
    空リストは「エラーなし（成功表示）」を意味する。
    結果を待っている間にエラーが表示されると、wait_resultはEngineErrorを送出する。
    """

    def __init__(self):
        self.diagnostics: list[Diagnostic] | None = None
        self.errors: list[str] = []
        self.loading = True
        self.render_count = 0
        self._error: str | None = None
        self._waiter: asyncio.Future | None = None

    @property
    def success(self) -> bool:
        return self.diagnostics == []

    def clear(self) -> None:
        self.diagnostics = None
        self._error = None

    def show_success(self) -> None:
        self._set_result([])

    def show_diagnostics(self, diagnostics: Sequence[Diagnostic]) -> None:
        self._set_result(list(diagnostics))

    def show_error(self, message: str) -> None:
        log("error", message)
        self.errors.append(message)
        self._error = message
        if self._waiter is not None and not self._waiter.done():
            self._waiter.set_exception(EngineError(message))
        self._waiter = None

    def dismiss_loading(self) -> None:
        self.loading = False

    def _set_result(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        self._error = None
        self.render_count += 1
        if self._waiter is not None and not self._waiter.done():
            self._waiter.set_result(diagnostics)
        self._waiter = None

    async def wait_result(self) -> list[Diagnostic]:
        """
        結果が表示されるまで待つ。すでに表示済みならその結果をすぐ返す。

        Raises:
            EngineError: 結果の代わりにエラーが表示された場合
        """
        if self.diagnostics is not None:
            return self.diagnostics
        if self._error is not None:
            raise EngineError(self._error)
        if self._waiter is None or self._waiter.done():
            self._waiter = asyncio.get_running_loop().create_future()
        return await self._waiter
