from enum import Enum
from pydantic import BaseModel, ConfigDict, Field

"""
lintセッションで受け渡すデータ構造を定義するPydanticモデル。
"""

class DocumentKind(str, Enum):
    """編集中のドキュメントの種類。適用する文法とサンプルを選ぶのに使う"""
    WORKFLOW = "workflow"
    ACTION = "action"

    @classmethod
    def parse(cls, value: str | None) -> "DocumentKind":
        """不明な値やNoneはworkflowとして扱う"""
        try:
            return cls(value)
        except ValueError:
            return cls.WORKFLOW


class SessionState(str, Enum):
    BOOTSTRAPPING = "bootstrapping"
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    REQUESTING = "requesting"


class SourceOrigin(str, Enum):
    """初期ソースをどこから取得したか"""
    INLINE = "inline"
    REMOTE = "remote"
    PERMALINK = "permalink"
    SAMPLE = "sample"


class Diagnostic(BaseModel):
    """
    エンジン（actionlint）が報告する1件のエラー。作成後は変更しない。
    """
    model_config = ConfigDict(frozen=True)

    line: int = Field(..., ge=1, description="1始まりの行番号")
    column: int = Field(..., ge=1, description="1始まりの列番号")
    message: str = Field(..., min_length=1, pattern=r"^[^\r\n]+$", description="エラーメッセージ")
    kind: str = Field(..., min_length=1, pattern=r"^[^\]\r\n]+$", description="ルールの種類（例: syntax-check）")

    def position(self) -> str:
        return f"line:{self.line}, col:{self.column}"


class ResolvedSource(BaseModel):
    text: str = Field(..., description="ドキュメントの本文")
    kind: DocumentKind = Field(DocumentKind.WORKFLOW, description="ドキュメントの種類")
    origin: SourceOrigin = Field(..., description="本文の取得元")
