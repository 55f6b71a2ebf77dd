from __future__ import annotations

import io
from typing import Any, Dict, List, Optional

import pytest
import requests

from ytdownloader import create_app, extractor, sources


class FakeResponse:
    def __init__(self, payload: Any, status_code: int = 200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self) -> Any:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeProcess:
    def __init__(self, data: bytes, returncode: int = 0):
        self.stdout = io.BytesIO(data)
        self.returncode = returncode
        self.running = True
        self.killed = False

    def poll(self):
        return None if self.running else self.returncode

    def kill(self):
        self.killed = True
        self.running = False
        self.returncode = -9

    def wait(self):
        self.running = False
        return self.returncode


class DummyYDL:
    """Stand-in for ``yt_dlp.YoutubeDL`` returning a canned info dict."""

    info: Optional[Dict[str, Any]] = None
    calls: List[str] = []

    def __init__(self, opts: Dict[str, Any]):
        self.opts = opts

    def __enter__(self) -> "DummyYDL":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        return False

    def extract_info(self, url: str, download: bool) -> Dict[str, Any]:
        DummyYDL.calls.append(url)
        if DummyYDL.info is None:
            raise RuntimeError("ERROR: Video unavailable")
        return DummyYDL.info


def make_raw_info(video_id: str = "dQw4w9WgXcQ") -> Dict[str, Any]:
    return {
        "id": video_id,
        "title": "Never Gonna Give You Up",
        "thumbnail": "https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg",
        "duration": 213,
        "channel": "Rick Astley",
        "view_count": 1500000000,
        "formats": [
            {"format_id": "18", "ext": "mp4", "height": 360, "tbr": 500,
             "vcodec": "avc1", "acodec": "mp4a", "filesize": 11_000_000,
             "url": "https://media.example/18"},
            {"format_id": "22", "ext": "mp4", "height": 720, "tbr": 1500,
             "vcodec": "avc1", "acodec": "mp4a", "format_note": "720p",
             "url": "https://media.example/22"},
            {"format_id": "140", "ext": "m4a", "abr": 128, "vcodec": "none",
             "acodec": "mp4a", "filesize": 3_400_000, "url": "https://media.example/140"},
            {"format_id": "251", "ext": "webm", "abr": 160, "vcodec": "none",
             "acodec": "opus", "url": "https://media.example/251"},
            {"format_id": "137", "ext": "mp4", "height": 1080, "vcodec": "avc1",
             "acodec": "none", "url": "https://media.example/137"},
            {"format_id": "sb0", "ext": "mhtml", "vcodec": "none", "acodec": "none",
             "url": "https://media.example/sb0"},
        ],
    }


def _offline(*args, **kwargs):
    raise requests.ConnectionError("network disabled in tests")


def _no_process(*args, **kwargs):
    raise OSError("yt-dlp binary disabled in tests")


@pytest.fixture(autouse=True)
def _isolate(monkeypatch: pytest.MonkeyPatch) -> None:
    DummyYDL.info = None
    DummyYDL.calls = []
    monkeypatch.setattr(extractor.yt_dlp, "YoutubeDL", DummyYDL)
    monkeypatch.setattr(sources.requests, "get", _offline)
    monkeypatch.setattr(sources.requests, "post", _offline)
    monkeypatch.setattr(extractor.subprocess, "run", _no_process)
    monkeypatch.setattr(extractor.subprocess, "Popen", _no_process)


@pytest.fixture
def app(tmp_path):
    return create_app({"TESTING": True, "TEMP_DIR": str(tmp_path)})


@pytest.fixture
def client(app):
    return app.test_client()
