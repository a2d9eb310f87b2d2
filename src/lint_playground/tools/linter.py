from pydantic import ValidationError
from typing import Sequence
import asyncio
import subprocess
import json
from ..config import ACTIONLINT_PATH
from ..errors import EngineError
from ..log_output.log import log
from ..session.bridge import CompletionCallback, EngineHooks
from ..session.state import Diagnostic, DocumentKind

# 標準入力のソースに付けるファイル名（actionlintはファイル名でworkflowかaction metadataかを判断する）
STDIN_FILENAMES = {
    DocumentKind.WORKFLOW: "test.yaml",
    DocumentKind.ACTION: "action.yml",
}


class ActionlintBridge:
    def __init__(self, executable: str = ACTIONLINT_PATH):
        """
        インストール済みのactionlintをlintエンジンとして使うEngineBridgeの実装。

        Args:
            executable (str): actionlintの実行ファイル
        """
        self.executable = executable
        self.version: str | None = None
        self._ready = False
        self._hooks: EngineHooks | None = None

    def is_ready(self) -> bool:
        return self._ready

    async def attach(self, hooks: EngineHooks) -> None:
        """
        actionlintが実行できることを確認し、準備完了をセッションに通知して最初のlintを行う。
        実行できない場合はエラーを表示し、準備完了にはならない。
        """
        self._hooks = hooks
        try:
            self.version = await asyncio.to_thread(self.check_version)
        except EngineError as e:
            hooks.show_error(f"{e} on preparing actionlint")
            return
        log("info", f"actionlint {self.version} を使います")
        self._ready = True
        hooks.on_ready()
        # 最初の結果を表示する
        self.run_lint(hooks.get_document_text(), hooks.get_document_kind(), hooks.on_check_completed)

    def check_version(self) -> str:
        try:
            proc = subprocess.run(
                [self.executable, "-version"],
                capture_output=True, text=True, check=False
            )
        except OSError as e:
            raise EngineError(str(e)) from e
        if proc.returncode != 0:
            raise EngineError(proc.stderr.strip() or f"{self.executable} -version exited with {proc.returncode}")
        lines = proc.stdout.strip().splitlines()
        return lines[0] if lines else "unknown"

    def run_lint(self, text: str, kind: DocumentKind, on_completed: CompletionCallback) -> None:
        """
        ワーカースレッドでactionlintを実行し、完了したらイベントループ上でon_completedを呼ぶ。
        すぐに返る。
        """
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, self.lint, text, kind)

        def done(f: asyncio.Future) -> None:
            if f.cancelled():
                return
            e = f.exception()
            if e is not None:
                log("error", f"actionlint: {e}")
                if self._hooks is not None:
                    self._hooks.show_error(f"{e} on applying lint rules")
                return
            on_completed(f.result())

        future.add_done_callback(done)

    def lint(self, text: str, kind: DocumentKind = DocumentKind.WORKFLOW) -> Sequence[Diagnostic]:
        """
        標準入力でソースを渡してactionlintを実行し、結果をDiagnosticのリストで返す。

        Args:
            text (str): lintするソース
            kind (DocumentKind): ソースの種類

        Returns:
            Sequence[Diagnostic]: actionlintが出力した順のエラー（エラーなしなら空）

        Raises:
            EngineError: actionlint自体の実行に失敗した場合
        """
        try:
            proc = subprocess.run(
                [self.executable, "-format", "{{json .}}", "-no-color",
                 "-stdin-filename", STDIN_FILENAMES[kind], "-"],
                input=text, capture_output=True, text=True, check=False
            )
        except OSError as e:
            raise EngineError(str(e)) from e
        output = proc.stdout.strip()
        # 終了コード 0: エラーなし, 1: lintエラーあり, それ以外: actionlint自体の失敗
        if proc.returncode not in (0, 1) and not output:
            raise EngineError(proc.stderr.strip() or f"actionlint exited with {proc.returncode}")
        return parse_json_output(output)


def parse_json_output(output: str) -> list[Diagnostic]:
    """`-format '{{json .}}'` の出力をDiagnosticのリストに変換する"""
    if not output:
        return []
    try:
        parsed = json.loads(output)
    except json.JSONDecodeError as e:
        raise EngineError(f"actionlint output is not JSON: {e}") from e
    if not isinstance(parsed, list):
        raise EngineError("actionlint output is not a JSON array")
    try:
        return [
            Diagnostic(line=item["line"], column=item["column"], message=item["message"], kind=item["kind"])
            for item in parsed
        ]
    except (KeyError, TypeError, ValidationError) as e:
        raise EngineError(f"unexpected actionlint output: {e}") from e
