from __future__ import annotations
"""Fetch-then-store of single objects between bucket/key locations."""
import logging

from .errors import RemoteError
from .models import DEFAULT_CONTENT_TYPE

LOGGER = logging.getLogger(__name__)


class ObjectTransplanter:
    """Copies one object's bytes and content type to another location.

    The remote API has no server-side copy, so every transplant downloads the
    object and uploads it again.
    """

    def __init__(self, store):
        self._store = store

    def fetch(self, bucket: str, key: str) -> tuple[bytes, str]:
        """Return the object's bytes and its content type.

        Raises:
            ObjectNotFound | RemoteError: when the object cannot be read.
        """

        body, content_type = self._store.get_object(bucket, key)
        return body, content_type or DEFAULT_CONTENT_TYPE

    def store(self, bucket: str, key: str, body: bytes, content_type: str) -> bool:
        try:
            self._store.put_object(bucket, key, body, content_type or DEFAULT_CONTENT_TYPE)
        except RemoteError as exc:
            LOGGER.warning("Could not store %s/%s: %s", bucket, key, exc)
            return False
        return True

    def transplant(self, src_bucket: str, src_key: str, dest_bucket: str, dest_key: str) -> bool:
        try:
            body, content_type = self.fetch(src_bucket, src_key)
        except RemoteError as exc:
            LOGGER.warning("Could not fetch %s/%s: %s", src_bucket, src_key, exc)
            return False
        stored = self.store(dest_bucket, dest_key, body, content_type)
        if stored:
            LOGGER.debug("Transplanted %s/%s -> %s/%s", src_bucket, src_key, dest_bucket, dest_key)
        return stored
