"""
環境変数（.envを含む）からplaygroundの設定を読み込むモジュール。
"""

import os
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()

# デフォルト値
DEBOUNCE_MS = 300 # 編集が止まってからlintを実行するまでの待ち時間
MOBILE_DEBOUNCE_MS = 1000 # スマートフォン等ではキー入力が遅いので長めに待つ
FETCH_TIMEOUT = 10.0 # リモートソース取得のタイムアウト（秒）
BASE_URL = "https://rhysd.github.io/actionlint/"
ACTIONLINT_PATH = "actionlint"


class PlaygroundConfig(BaseModel):
    debounce_ms: int = Field(DEBOUNCE_MS, ge=0, description="デスクトップでのdebounce間隔（ミリ秒）")
    mobile_debounce_ms: int = Field(MOBILE_DEBOUNCE_MS, ge=0, description="モバイルでのdebounce間隔（ミリ秒）")
    fetch_timeout: float = Field(FETCH_TIMEOUT, gt=0, description="リモートソース取得のタイムアウト（秒）")
    base_url: str = Field(BASE_URL, description="パーマリンクを組み立てるplaygroundのURL")
    actionlint_path: str = Field(ACTIONLINT_PATH, description="actionlintの実行ファイル")
    log_is: bool = Field(True, description="ログ出力の有無")

    def debounce_seconds(self, mobile: bool = False) -> float:
        ms = self.mobile_debounce_ms if mobile else self.debounce_ms
        return ms / 1000


def load_config() -> PlaygroundConfig:
    """
    環境変数からPlaygroundConfigを作成する。未設定の項目はデフォルト値になる。

    Returns:
        PlaygroundConfig: 読み込んだ設定
    """
    env = {
        "debounce_ms": os.environ.get("PLAYGROUND_DEBOUNCE_MS"),
        "mobile_debounce_ms": os.environ.get("PLAYGROUND_MOBILE_DEBOUNCE_MS"),
        "fetch_timeout": os.environ.get("PLAYGROUND_FETCH_TIMEOUT"),
        "base_url": os.environ.get("PLAYGROUND_BASE_URL"),
        "actionlint_path": os.environ.get("ACTIONLINT_PATH"),
        "log_is": os.environ.get("PLAYGROUND_LOG"),
    }
    return PlaygroundConfig(**{k: v for k, v in env.items() if v is not None})
