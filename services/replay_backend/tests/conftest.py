import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
CLIENT_SRC = ROOT.parent / "warroom_client" / "src"
REPO_ROOT = Path(__file__).resolve().parents[3]
for path in (str(SRC), str(CLIENT_SRC), str(REPO_ROOT)):
    if path not in sys.path:
        sys.path.append(path)

import httpx
import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("REPLAY_AUTH_TOKEN", "replay-token")
os.environ.setdefault("REPLAY_FAIL_MARKER", "[fail]")
os.environ.setdefault("REPLAY_CHUNK_WORDS", "2")
os.environ.setdefault("WARROOM_GEMINI_WORD_DELAY_SECONDS", "0")

from replay_backend import settings as settings_module

settings_module.get_settings.cache_clear()

from replay_backend.main import app
from warroom_client.auth import StaticTokenProvider
from warroom_client.client import WarRoomClient
from warroom_client.settings import get_settings as get_client_settings

REPLAY_URL = "http://replay.test"


@pytest.fixture()
def client():
    return TestClient(app)


@pytest.fixture()
async def replay_http():
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=REPLAY_URL) as http:
        yield http


@pytest.fixture()
def warroom(replay_http):
    settings = get_client_settings().model_copy(update={"backend_url": REPLAY_URL})
    return WarRoomClient(settings, token_provider=StaticTokenProvider("replay-token"), http_client=replay_http)
