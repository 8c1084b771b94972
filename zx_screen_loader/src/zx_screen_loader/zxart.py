"""Client for the zxart.ee picture export API."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping

import requests
from unidecode import unidecode

logger = logging.getLogger(__name__)

API_ROOT = "https://zxart.ee/api"
DEFAULT_TIMEOUT = 30.0


class SortType(Enum):
    VOTES = "votes"
    VIEWS = "views"
    COMMENTS_AMOUNT = "commentsAmount"
    YEAR = "year"
    DATE = "date"
    TITLE = "title"


class SortDirection(Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"
    RANDOM = "rand"


class ZXArtError(Exception):
    """Raised when zxart.ee cannot be reached or returns unusable data."""


def transliterate(text: str) -> str:
    """Reduce ``text`` to printable ASCII the Spectrum font can show.

    Titles are largely Russian; any script is romanized first.
    """
    return "".join(c for c in unidecode(text) if " " <= c <= "~")


def _get_value(data: Mapping[str, Any], key: str, default: Any) -> Any:
    value = data.get(key)
    return default if value is None else value


@dataclass
class ZXArtFile:
    id: int = 0
    title: str = ""
    url: str = ""
    original_url: str = ""
    tags: List[str] = field(default_factory=list)
    type: str = ""
    year: str = ""
    data: bytes = b""

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ZXArtFile":
        return cls(
            id=int(_get_value(data, "id", 0)),
            title=str(_get_value(data, "title", "")),
            url=str(_get_value(data, "url", "")),
            original_url=str(_get_value(data, "originalUrl", "")),
            tags=[str(tag) for tag in _get_value(data, "tags", [])],
            type=str(_get_value(data, "type", "")),
            year=str(_get_value(data, "year", "")),
        )

    @property
    def display_name(self) -> str:
        return transliterate(self.title)

    def download(self, session: requests.Session | None = None, timeout: float = DEFAULT_TIMEOUT) -> bytes:
        """Fetch the original file and keep it in :attr:`data`."""
        if not self.original_url:
            raise ZXArtError(f"Picture {self.id} has no original URL")
        http = session or requests.Session()
        try:
            response = http.get(self.original_url, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise ZXArtError(f"Failed to download {self.original_url}") from exc
        self.data = response.content
        logger.debug("downloaded %s (%d bytes)", self.original_url, len(self.data))
        return self.data


class ZXArtCollection:
    """Queries the zxPicture export for standard SCREEN$ pictures."""

    def __init__(self, session: requests.Session | None = None, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

    @staticmethod
    def build_url(
        start: int = 0,
        limit: int = 60,
        sort_type: SortType = SortType.VOTES,
        direction: SortDirection = SortDirection.DESCENDING,
    ) -> str:
        return (
            f"{API_ROOT}/types:zxPicture/export:zxPicture/language:rus"
            f"/start:{start}/limit:{limit}"
            f"/order:{sort_type.value},{direction.value}"
            "/filter:zxPictureType=standard"
        )

    def get_files(
        self,
        start: int = 0,
        limit: int = 60,
        sort_type: SortType = SortType.VOTES,
        direction: SortDirection = SortDirection.DESCENDING,
    ) -> List[ZXArtFile]:
        url = self.build_url(start, limit, sort_type, direction)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload: Dict[str, Any] = response.json()
        except requests.RequestException as exc:
            raise ZXArtError(f"Request failed: {url}") from exc
        except ValueError as exc:
            raise ZXArtError(f"Invalid JSON from {url}") from exc

        try:
            items = payload["responseData"]["zxPicture"]
        except (KeyError, TypeError) as exc:
            raise ZXArtError("Unexpected response layout from zxart.ee") from exc

        return [ZXArtFile.from_json(item) for item in items or []]
