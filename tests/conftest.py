import pytest
import requests
from lint_playground.config import PlaygroundConfig
from lint_playground.log_output.log import set_log_is
from lint_playground.session.state import Diagnostic


@pytest.fixture(autouse=True)
def quiet_log():
    set_log_is(False)
    yield
    set_log_is(True)


class FakeTimer:
    def __init__(self, scheduler, delay, callback):
        self.scheduler = scheduler
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """手動で時間を進めるタイマー"""

    def __init__(self):
        self.timers: list[FakeTimer] = []

    def call_later(self, delay, callback):
        timer = FakeTimer(self, delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def armed(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled]

    def fire_all(self):
        for timer in self.armed:
            timer.cancelled = True
            timer.callback()


class FakeBridge:
    """run_lintの呼び出しを記録し、テストから結果を返せるEngineBridge"""

    def __init__(self, ready: bool = True):
        self.ready = ready
        self.calls = []
        self.hooks = None

    def is_ready(self):
        return self.ready

    async def attach(self, hooks):
        self.hooks = hooks
        if self.ready:
            hooks.on_ready()

    def run_lint(self, text, kind, on_completed):
        self.calls.append((text, kind, on_completed))

    def complete(self, index, diagnostics):
        self.calls[index][2](diagnostics)


class FakeResponse:
    def __init__(self, status_code=200, text="", reason="OK"):
        self.status_code = status_code
        self.text = text
        self.reason = reason

    @property
    def ok(self):
        return 200 <= self.status_code < 300


class FakeSession:
    """URLごとに決まったレスポンスを返すrequests.Sessionの代わり"""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.requested = []

    def get(self, url, timeout=None):
        self.requested.append(url)
        res = self.responses.get(url)
        if res is None:
            raise requests.ConnectionError(f"connection refused: {url}")
        return res


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def bridge():
    return FakeBridge()


@pytest.fixture
def config():
    return PlaygroundConfig(debounce_ms=300, mobile_debounce_ms=1000, base_url="https://example.com/playground/")


def diag(line=1, column=1, message="error", kind="syntax-check"):
    return Diagnostic(line=line, column=column, message=message, kind=kind)
