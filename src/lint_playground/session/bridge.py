"""
セッションコントローラーと外部エンジン（actionlint）・タイマーの境界を定義するモジュール。

エンジンはブラックボックスとして扱い、ここで定義するインターフェースだけを通して呼び出す。
"""

import asyncio
from typing import Callable, Protocol, Sequence
from .state import Diagnostic, DocumentKind

CompletionCallback = Callable[[Sequence[Diagnostic]], None]


class EngineHooks(Protocol):
    """エンジン側から呼び出せるセッションの機能"""

    def get_document_text(self) -> str: ...

    def get_document_kind(self) -> DocumentKind: ...

    def on_ready(self) -> None: ...

    def on_check_completed(self, diagnostics: Sequence[Diagnostic]) -> None: ...

    def show_error(self, message: str) -> None: ...


class EngineBridge(Protocol):
    """
    lintエンジンの呼び出し口。

    run_lintはブロックせずにすぐ返り、結果は後でon_completedに渡される。
    1回の呼び出しに対してon_completedが呼ばれる回数は0回以上で、呼び出し順に返るとは限らない。
    """

    def is_ready(self) -> bool: ...

    async def attach(self, hooks: EngineHooks) -> None: ...

    def run_lint(self, text: str, kind: DocumentKind, on_completed: CompletionCallback) -> None: ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    """実行中のイベントループのcall_laterでタイマーを作る"""

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)
