"""
Artifact publisher: hand a captured still to the blob store and return a
durable reference.

Keys are derived from the current UTC time with microsecond resolution.
Two captures within the same microsecond share a key and the last write
wins; images are not deduplicated. Failures are terminal for the capture
attempt: nothing here retries.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable

from google.api_core import exceptions as api_exceptions
from google.auth import exceptions as auth_exceptions

from models.capture import PublishedArtifact, StillImage
from models.errors import PublishError, PublishNetworkError, PublishRejected
from .storage import BlobStore

_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
}

_NETWORK_ERRORS = (
    ConnectionError,
    TimeoutError,
    auth_exceptions.TransportError,
    api_exceptions.ServerError,
    api_exceptions.RetryError,
)


def classify_publish_failure(error: Exception, step: str) -> PublishError:
    """Map a blob store exception onto the publish error taxonomy."""
    if isinstance(error, PublishError):
        return error
    if isinstance(error, _NETWORK_ERRORS):
        return PublishNetworkError(f"{step} failed: {error}")
    return PublishRejected(f"{step} failed: {error}")


class ArtifactPublisher:
    def __init__(self, store: BlobStore, folder: str = "images", clock: Callable[[], float] = time.time):
        self.store = store
        self.folder = folder.strip("/")
        self._clock = clock

    def make_key(self, image: StillImage) -> str:
        ts = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        stamp = ts.isoformat(timespec="microseconds").replace("+00:00", "Z")
        ext = _EXTENSIONS.get(image.mime_type, "bin")
        return f"{self.folder}/{stamp}.{ext}" if self.folder else f"{stamp}.{ext}"

    def publish(self, image: StillImage) -> PublishedArtifact:
        """
        Upload the still and resolve its URL.

        Raises:
            PublishNetworkError: Connection, timeout or server-side failure.
            PublishRejected: The store refused the upload or URL lookup.
        """
        key = self.make_key(image)

        try:
            handle = self.store.put(key, image.data_url, encoding="data_url")
        except Exception as e:
            logging.error(f"Error uploading image to {self.store.name} store: {e}")
            raise classify_publish_failure(e, "upload") from e

        try:
            url = self.store.resolve_url(handle)
        except Exception as e:
            logging.error(f"Error resolving URL for {key}: {e}")
            raise classify_publish_failure(e, "url resolution") from e

        logging.info(f"Published capture: {key}")
        return PublishedArtifact(key=key, url=url, published_at=self._clock())
