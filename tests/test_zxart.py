import pytest
import requests

from zx_screen_loader.zxart import (
    SortDirection,
    SortType,
    ZXArtCollection,
    ZXArtError,
    ZXArtFile,
    transliterate,
)


class FakeResponse:
    def __init__(self, payload=None, content=b"", status_error=None, json_error=None):
        self.payload = payload
        self.content = content
        self.status_error = status_error
        self.json_error = json_error

    def raise_for_status(self):
        if self.status_error is not None:
            raise self.status_error

    def json(self):
        if self.json_error is not None:
            raise self.json_error
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, timeout=None):
        self.requests.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def test_build_url():
    url = ZXArtCollection.build_url(42, 1, SortType.VOTES, SortDirection.DESCENDING)
    assert url == (
        "https://zxart.ee/api/types:zxPicture/export:zxPicture/language:rus"
        "/start:42/limit:1/order:votes,desc/filter:zxPictureType=standard"
    )
    assert "order:commentsAmount,rand" in ZXArtCollection.build_url(
        0, 60, SortType.COMMENTS_AMOUNT, SortDirection.RANDOM
    )


def test_get_files_parses_pictures():
    payload = {
        "responseData": {
            "zxPicture": [
                {
                    "id": 5,
                    "title": "Тест",
                    "url": None,
                    "originalUrl": "https://zxart.ee/file/5/test.scr",
                    "tags": ["demo", "scene"],
                    "type": "standard",
                    "year": 1990,
                }
            ]
        }
    }
    session = FakeSession(FakeResponse(payload))
    files = ZXArtCollection(session, timeout=3).get_files(10, 1)
    assert session.requests == [(ZXArtCollection.build_url(10, 1), 3)]
    assert len(files) == 1
    picture = files[0]
    assert picture.id == 5
    assert picture.url == ""
    assert picture.original_url == "https://zxart.ee/file/5/test.scr"
    assert picture.tags == ["demo", "scene"]
    assert picture.year == "1990"
    assert picture.display_name == "Test"


def test_get_files_empty_list():
    session = FakeSession(FakeResponse({"responseData": {"zxPicture": []}}))
    assert ZXArtCollection(session).get_files() == []


def test_get_files_network_error():
    session = FakeSession(error=requests.ConnectionError("offline"))
    with pytest.raises(ZXArtError):
        ZXArtCollection(session).get_files()


def test_get_files_http_error():
    session = FakeSession(FakeResponse(status_error=requests.HTTPError("503")))
    with pytest.raises(ZXArtError):
        ZXArtCollection(session).get_files()


def test_get_files_bad_json():
    session = FakeSession(FakeResponse(json_error=ValueError("not json")))
    with pytest.raises(ZXArtError):
        ZXArtCollection(session).get_files()


def test_get_files_unexpected_layout():
    session = FakeSession(FakeResponse({"error": "nope"}))
    with pytest.raises(ZXArtError):
        ZXArtCollection(session).get_files()


def test_download_keeps_data():
    picture = ZXArtFile(id=1, original_url="https://zxart.ee/file/1.scr")
    session = FakeSession(FakeResponse(content=b"\x01" * 6912))
    assert picture.download(session, timeout=2) == b"\x01" * 6912
    assert picture.data == b"\x01" * 6912
    assert session.requests == [("https://zxart.ee/file/1.scr", 2)]


def test_download_without_url():
    with pytest.raises(ZXArtError):
        ZXArtFile(id=1).download(FakeSession())


def test_download_failure():
    picture = ZXArtFile(id=1, original_url="https://zxart.ee/file/1.scr")
    with pytest.raises(ZXArtError):
        picture.download(FakeSession(error=requests.Timeout("slow")))


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Hello", "Hello"),
        ("Привет", "Privet"),
        ("Тест", "Test"),
        ("Café", "Cafe"),
        ("Αθήνα", "Athena"),
    ],
)
def test_transliterate(text, expected):
    assert transliterate(text) == expected


def test_transliterate_keeps_only_printable_ascii():
    for text in ("ქართული", "日本語", "Ελλάδα", "line\nbreak\t"):
        result = transliterate(text)
        assert result
        assert all(" " <= c <= "~" for c in result)
