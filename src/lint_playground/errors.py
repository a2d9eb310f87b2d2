"""
playground全体で使う例外クラスを定義するモジュール。
"""


class PlaygroundError(Exception):
    """lint_playgroundが送出する例外の基底クラス"""


class FetchError(PlaygroundError):
    """
    リモートのソース取得に失敗したことを表す例外。
    HTTPのステータスを受け取れなかった場合（接続エラー等）はstatusがNoneになる。
    """

    def __init__(self, url: str, status: int | None = None, status_text: str = ""):
        self.url = url
        self.status = status
        self.status_text = status_text
        if status is None:
            message = f"Fetching {url} failed: {status_text}"
        else:
            message = f"Fetching {url} failed with status {status}: {status_text}"
        super().__init__(message)


class DecodeError(PlaygroundError):
    """パーマリンクのトークンを復元できなかったことを表す例外"""


class EngineError(PlaygroundError):
    """lintエンジン自体の実行に失敗したことを表す例外"""
