"""
Online media helpers.

A URL pointing at a known video provider is stored as a small file whose
extension names the provider (``.youtube``, ``.vimeo``) and whose content is
the provider's media id, instead of downloading the page behind the URL.
"""

import logging
import re
from abc import ABC
from typing import Callable, Iterable, List, Optional, Pattern

import requests

from interest_api.storage import Folder, StoredFile, sanitize_file_name

logger = logging.getLogger(__name__)


class OnlineMediaHelper(ABC):
    """Recognizes one provider's URLs and materializes them as media files"""

    provider_name: str = ""
    extension: str = ""
    url_patterns: List[Pattern] = []
    oembed_endpoint: str = ""
    canonical_url: str = ""

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = 10.0):
        self.session = session or requests.Session()
        self.timeout = timeout

    def extract_media_id(self, url: str) -> Optional[str]:
        for pattern in self.url_patterns:
            match = pattern.search(url)
            if match:
                return match.group('id')
        return None

    def fetch_title(self, media_id: str) -> Optional[str]:
        """Look up the media title through the provider's oEmbed endpoint"""
        try:
            response = self.session.get(
                self.oembed_endpoint,
                params={'url': self.canonical_url.format(id=media_id), 'format': 'json'},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json().get('title') or None
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning(f"oEmbed lookup failed for {self.provider_name} media {media_id}: {e}")
            return None

    def find_existing_file(
        self,
        media_id: str,
        folder: Folder,
        reusable: Optional[Callable[[StoredFile], bool]] = None,
    ) -> Optional[StoredFile]:
        """Return a file in ``folder`` that already holds ``media_id``.

        Files rejected by ``reusable`` are passed over.
        """
        for stored in folder.list_files():
            if stored.extension != self.extension or stored.get_contents() != media_id.encode():
                continue
            if reusable is None or reusable(stored):
                return stored
        return None

    def transform_url_to_file(
        self,
        url: str,
        folder: Folder,
        reusable: Optional[Callable[[StoredFile], bool]] = None,
    ) -> Optional[StoredFile]:
        media_id = self.extract_media_id(url)
        if media_id is None:
            return None

        existing = self.find_existing_file(media_id, folder, reusable)
        if existing is not None:
            logger.info(f"Reusing {existing.identifier} for {self.provider_name} media {media_id}")
            return existing

        title = self.fetch_title(media_id) or f"{self.provider_name}_{media_id}"
        base_name = sanitize_file_name(title)
        file_name = f"{base_name}.{self.extension}"
        counter = 1
        while folder.has_file(file_name):
            file_name = f"{base_name}_{counter}.{self.extension}"
            counter += 1

        stored = folder.create_file(file_name)
        stored.set_contents(media_id.encode())
        logger.info(f"Created {stored.identifier} for {self.provider_name} media {media_id}")
        return stored


class YouTubeHelper(OnlineMediaHelper):
    provider_name = "YouTube"
    extension = "youtube"
    url_patterns = [
        re.compile(r'youtu\.be/(?P<id>[A-Za-z0-9_-]{11})'),
        re.compile(r'youtube(?:-nocookie)?\.com/(?:embed|shorts|v)/(?P<id>[A-Za-z0-9_-]{11})'),
        re.compile(r'youtube\.com/watch\?(?:.*&)?v=(?P<id>[A-Za-z0-9_-]{11})'),
    ]
    oembed_endpoint = "https://www.youtube.com/oembed"
    canonical_url = "https://www.youtube.com/watch?v={id}"


class VimeoHelper(OnlineMediaHelper):
    provider_name = "Vimeo"
    extension = "vimeo"
    url_patterns = [
        re.compile(r'player\.vimeo\.com/video/(?P<id>\d+)'),
        re.compile(r'vimeo\.com/(?:channels/[^/]+/|groups/[^/]+/videos/)?(?P<id>\d+)'),
    ]
    oembed_endpoint = "https://vimeo.com/api/oembed.json"
    canonical_url = "https://vimeo.com/{id}"


class OnlineMediaHelperRegistry:
    """Tries each registered helper in order"""

    def __init__(self, helpers: Iterable[OnlineMediaHelper]):
        self.helpers = list(helpers)

    @classmethod
    def default(cls, session: Optional[requests.Session] = None, timeout: float = 10.0) -> "OnlineMediaHelperRegistry":
        return cls([YouTubeHelper(session, timeout), VimeoHelper(session, timeout)])

    def supported_file_extensions(self) -> List[str]:
        return [helper.extension for helper in self.helpers]

    def transform_url_to_file(
        self,
        url: str,
        folder: Folder,
        allowed_extensions: Optional[Iterable[str]] = None,
        reusable: Optional[Callable[[StoredFile], bool]] = None,
    ) -> Optional[StoredFile]:
        """Return a media file for ``url``, or None if no helper recognizes it.

        An existing file for the same media is returned instead of a new one
        when ``reusable`` accepts it (or when no ``reusable`` is given).
        """
        allowed = set(allowed_extensions) if allowed_extensions is not None else None
        for helper in self.helpers:
            if allowed is not None and helper.extension not in allowed:
                continue
            stored = helper.transform_url_to_file(url, folder, reusable)
            if stored is not None:
                return stored
        return None
