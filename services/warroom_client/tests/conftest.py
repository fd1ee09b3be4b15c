import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
REPO_ROOT = Path(__file__).resolve().parents[3]
for path in (str(SRC), str(REPO_ROOT)):
    if path not in sys.path:
        sys.path.append(path)

import httpx
import pytest

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("WARROOM_BACKEND_URL", "http://backend.test/api")
os.environ.setdefault("WARROOM_GEMINI_WORD_DELAY_SECONDS", "0")
for name in ("WARROOM_AUTH_TOKEN", "SUPABASE_URL", "SUPABASE_ANON_KEY", "WARROOM_BRAND_NAME"):
    os.environ.pop(name, None)

from warroom_client import settings as settings_module

settings_module.get_settings.cache_clear()

from warroom_client.client import WarRoomClient
from warroom_client.coordinator import DualStreamCallbacks
from warroom_client.reconciler import StreamCallbacks


class CallRecorder:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def named(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]

    def single(self, web_search: bool = True) -> StreamCallbacks:
        return StreamCallbacks(
            on_chunk=lambda delta: self.calls.append(("chunk", delta)),
            on_complete=lambda: self.calls.append(("complete",)),
            on_error=lambda message: self.calls.append(("error", message)),
            on_web_search_start=(
                (lambda query: self.calls.append(("search_start", query))) if web_search else None
            ),
            on_web_search_complete=(
                (lambda: self.calls.append(("search_complete",))) if web_search else None
            ),
        )

    def dual(self) -> DualStreamCallbacks:
        return DualStreamCallbacks(
            on_start=lambda: self.calls.append(("start",)),
            on_step=lambda tag, message: self.calls.append(("step", tag, message)),
            on_step_complete=lambda tag, ms: self.calls.append(("step_complete", tag, ms)),
            on_chunk=lambda text, done, tag: self.calls.append(("chunk", text, done, tag)),
            on_complete=lambda final, a, b: self.calls.append(("complete", final, a, b)),
            on_error=lambda message: self.calls.append(("error", message)),
        )


@pytest.fixture()
def recorder():
    return CallRecorder()


@pytest.fixture()
def settings():
    return settings_module.get_settings()


@pytest.fixture()
async def make_client(settings):
    opened: list[httpx.AsyncClient] = []

    def _make(handler, **kwargs):
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        opened.append(http)
        return WarRoomClient(kwargs.pop("settings", settings), http_client=http, **kwargs)

    yield _make
    for http in opened:
        await http.aclose()
