from __future__ import annotations

import pytest
import requests

from ytdownloader import sources
from ytdownloader.errors import SourceError

from .conftest import FakeResponse

VIDEO_ID = "dQw4w9WgXcQ"


def test_invidious_falls_through_to_next_instance(monkeypatch):
    requested = []

    def fake_get(url, **kwargs):
        requested.append(url)
        if url.startswith("https://one"):
            raise requests.Timeout("slow")
        return FakeResponse({
            "title": "Title",
            "author": "Channel",
            "lengthSeconds": 213,
            "viewCount": 42,
            "videoThumbnails": [{"url": f"t{i}"} for i in range(5)],
        })

    monkeypatch.setattr(sources.requests, "get", fake_get)

    info = sources.info_from_invidious(VIDEO_ID, ["https://one", "https://two/"])

    assert requested == [f"https://one/api/v1/videos/{VIDEO_ID}",
                         f"https://two/api/v1/videos/{VIDEO_ID}"]
    assert info == {
        "id": VIDEO_ID,
        "title": "Title",
        "thumbnail": "t3",
        "duration": "3:33",
        "channel": "Channel",
        "view_count": 42,
        "formats": [],
    }


def test_invidious_all_instances_fail(monkeypatch):
    monkeypatch.setattr(sources.requests, "get", lambda url, **kwargs: FakeResponse({}, 502))
    with pytest.raises(SourceError):
        sources.info_from_invidious(VIDEO_ID, ["https://one", "https://two"])


def test_invidious_uses_first_thumbnail_when_few(monkeypatch):
    monkeypatch.setattr(sources.requests, "get", lambda url, **kwargs: FakeResponse({
        "title": "T", "videoThumbnails": [{"url": "only"}]}))
    assert sources.info_from_invidious(VIDEO_ID, ["https://one"])["thumbnail"] == "only"


def test_youtubei_player(monkeypatch):
    seen = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        seen["url"] = url
        seen["json"] = json
        return FakeResponse({"videoDetails": {
            "title": "Title",
            "author": "Channel",
            "lengthSeconds": "3725",
            "thumbnail": {"thumbnails": [{"url": "small"}, {"url": "big"}]},
        }})

    monkeypatch.setattr(sources.requests, "post", fake_post)

    info = sources.info_from_youtubei(VIDEO_ID)

    assert seen["url"] == sources.YOUTUBEI_PLAYER_URL
    assert seen["json"]["videoId"] == VIDEO_ID
    assert seen["json"]["context"]["client"]["clientName"] == "WEB"
    assert info["thumbnail"] == "big"
    assert info["duration"] == "1:02:05"


def test_youtubei_without_video_details(monkeypatch):
    monkeypatch.setattr(sources.requests, "post",
                        lambda url, **kwargs: FakeResponse({"playabilityStatus": {"status": "ERROR"}}))
    with pytest.raises(SourceError):
        sources.info_from_youtubei(VIDEO_ID)


def test_noembed(monkeypatch):
    monkeypatch.setattr(sources.requests, "get", lambda url, **kwargs: FakeResponse({
        "title": "Title", "author_name": "Channel", "thumbnail_url": "thumb"}))

    info = sources.info_from_noembed(VIDEO_ID)

    assert info["title"] == "Title"
    assert info["channel"] == "Channel"
    assert info["duration"] == "Unknown"


def test_noembed_never_fails():
    info = sources.info_from_noembed(VIDEO_ID)

    assert info == {
        "id": VIDEO_ID,
        "title": "YouTube Video",
        "thumbnail": f"https://img.youtube.com/vi/{VIDEO_ID}/hqdefault.jpg",
        "duration": "Unknown",
        "channel": "Unknown",
        "view_count": None,
        "formats": [],
    }


def test_converter_download_url_tries_apis_in_order(monkeypatch):
    requested = []

    def fake_post(url, **kwargs):
        requested.append(url)
        if "vevioz" in url:
            raise requests.ConnectionError("down")
        if "yt5s" in url:
            return FakeResponse({"status": "fail"})
        return FakeResponse({"downloadUrl": "https://cdn.example/file.mp3"})

    monkeypatch.setattr(sources.requests, "post", fake_post)

    assert sources.converter_download_url(VIDEO_ID, "mp3") == "https://cdn.example/file.mp3"
    assert requested[0] == f"https://api.vevioz.com/api/button/mp3/{VIDEO_ID}"
    assert len(requested) == 3


def test_converter_download_url_accepts_d_url(monkeypatch):
    monkeypatch.setattr(sources.requests, "post",
                        lambda url, **kwargs: FakeResponse({"d_url": "https://cdn.example/v.mp4"}))
    assert sources.converter_download_url(VIDEO_ID) == "https://cdn.example/v.mp4"


def test_converter_download_url_all_fail():
    assert sources.converter_download_url(VIDEO_ID) is None


def test_alternative_links():
    links = sources.alternative_links(VIDEO_ID, "mp3")

    assert [link["name"] for link in links] == ["vevioz", "loader.to", "y2mate", "ssyoutube"]
    assert links[0]["url"] == f"https://api.vevioz.com/api/button/mp3/{VIDEO_ID}"
    assert "https%3A%2F%2Fwww.youtube.com%2Fwatch%3Fv%3DdQw4w9WgXcQ" in links[1]["url"]


def test_invidious_skips_instance_without_video_details(monkeypatch):
    def fake_get(url, **kwargs):
        if url.startswith("https://parked"):
            return FakeResponse({"message": "welcome"})
        return FakeResponse({"title": "Real Title", "author": "Channel"})

    monkeypatch.setattr(sources.requests, "get", fake_get)

    info = sources.info_from_invidious(VIDEO_ID, ["https://parked", "https://good"])
    assert info["title"] == "Real Title"


def test_invidious_non_dict_body_fails(monkeypatch):
    monkeypatch.setattr(sources.requests, "get", lambda url, **kwargs: FakeResponse(["not", "a", "video"]))
    with pytest.raises(SourceError):
        sources.info_from_invidious(VIDEO_ID, ["https://one"])
