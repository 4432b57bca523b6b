"""
Blob stores for captured stills.

Two implementations share one contract:
- put(key, data, encoding) -> BlobHandle
- resolve_url(handle) -> str

GcsBlobStore uploads to a Google Cloud Storage bucket; LocalBlobStore writes
under a directory that the web app serves (local-only mode).
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional, Tuple, Union

from .utils import format_cloud_path

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<b64>;base64)?,(?P<payload>.*)$", re.DOTALL)

ENCODINGS = ("data_url", "base64", "raw")


@dataclass(frozen=True)
class BlobHandle:
    key: str
    bucket: Optional[str] = None
    content_type: Optional[str] = None
    size: int = 0


def decode_payload(data: Union[str, bytes], encoding: str = "data_url") -> Tuple[bytes, str]:
    """
    Decode an upload payload into bytes.

    Args:
        data: Payload as given by the caller.
        encoding: One of "data_url", "base64", "raw".

    Returns:
        (payload_bytes, content_type)
    """
    if encoding not in ENCODINGS:
        raise ValueError(f"Unsupported encoding: {encoding}")

    if encoding == "raw":
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        return payload, "application/octet-stream"

    text = data.decode("ascii") if isinstance(data, bytes) else data

    if encoding == "base64":
        try:
            return base64.b64decode(text, validate=True), "application/octet-stream"
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e

    match = _DATA_URL_RE.match(text)
    if match is None:
        raise ValueError("Invalid data URL")
    content_type = match.group("mime") or "text/plain"
    if match.group("b64"):
        try:
            payload = base64.b64decode(match.group("payload"), validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 payload in data URL: {e}") from e
    else:
        payload = match.group("payload").encode("utf-8")
    return payload, content_type


class BlobStore:
    name = "blob"

    def put(self, key: str, data: Union[str, bytes], encoding: str = "data_url") -> BlobHandle:
        raise NotImplementedError

    def resolve_url(self, handle: BlobHandle) -> str:
        raise NotImplementedError


class LocalBlobStore(BlobStore):
    """Filesystem-backed store; URLs point at the app's media mount."""

    name = "local"

    def __init__(self, root_dir: str, url_prefix: str = "/media"):
        self.root_dir = root_dir
        self.url_prefix = url_prefix.rstrip("/")
        os.makedirs(root_dir, exist_ok=True)

    def _path_for(self, key: str) -> str:
        root = os.path.abspath(self.root_dir)
        path = os.path.abspath(os.path.join(root, key))
        if os.path.commonpath([root, path]) != root:
            raise ValueError(f"Blob key escapes store root: {key}")
        return path

    def put(self, key: str, data: Union[str, bytes], encoding: str = "data_url") -> BlobHandle:
        payload, content_type = decode_payload(data, encoding)
        path = self._path_for(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(payload)
        logging.info(f"Stored blob locally: {key} ({len(payload)} bytes)")
        return BlobHandle(key=key, content_type=content_type, size=len(payload))

    def resolve_url(self, handle: BlobHandle) -> str:
        if not os.path.exists(self._path_for(handle.key)):
            raise FileNotFoundError(f"Blob not found: {handle.key}")
        return f"{self.url_prefix}/{handle.key}"


class GcsBlobStore(BlobStore):
    """
    Google Cloud Storage backed store.

    url_mode:
        "signed": time-limited V4 signed URL (default)
        "public": the blob's public URL (bucket must allow public reads)
        "gs":     gs://bucket/key reference
    """

    name = "gcs"

    def __init__(self, bucket: Any, url_mode: str = "signed", signed_url_ttl_minutes: int = 60 * 24 * 7):
        if url_mode not in ("signed", "public", "gs"):
            raise ValueError(f"Unsupported url_mode: {url_mode}")
        self.bucket = bucket
        self.url_mode = url_mode
        self.signed_url_ttl = timedelta(minutes=signed_url_ttl_minutes)

    def put(self, key: str, data: Union[str, bytes], encoding: str = "data_url") -> BlobHandle:
        payload, content_type = decode_payload(data, encoding)
        blob = self.bucket.blob(key)
        blob.upload_from_string(payload, content_type=content_type)
        logging.info(f"Uploaded blob: gs://{self.bucket.name}/{key}")
        return BlobHandle(key=key, bucket=self.bucket.name, content_type=content_type, size=len(payload))

    def resolve_url(self, handle: BlobHandle) -> str:
        blob = self.bucket.blob(handle.key)
        if self.url_mode == "public":
            return blob.public_url
        if self.url_mode == "gs":
            folder, _, filename = handle.key.rpartition("/")
            return format_cloud_path(self.bucket.name, folder, filename) if folder else f"gs://{self.bucket.name}/{filename}"
        return blob.generate_signed_url(version="v4", expiration=self.signed_url_ttl, method="GET")


def create_gcs_blob_store(cloud_config: Dict[str, Any]) -> Optional[GcsBlobStore]:
    """
    Build a GcsBlobStore from the `gcp` cloud config.

    Returns None if credentials are missing or the client cannot be created.
    """
    from google.cloud import storage
    from .auth import get_credentials

    gcp = cloud_config["gcp"]
    credentials = get_credentials(gcp["credentials_file"])
    if credentials is None:
        logging.warning("Cloud blob store disabled due to missing credentials")
        return None

    try:
        client = storage.Client(project=gcp["project_id"], credentials=credentials)
        bucket = client.bucket(gcp["storage"]["bucket_name"])
    except Exception as e:
        logging.error(f"Failed to initialize cloud storage client: {e}")
        return None

    store_cfg = gcp["storage"]
    logging.info(f"Cloud blob store initialized (bucket={bucket.name})")
    return GcsBlobStore(
        bucket,
        url_mode=store_cfg.get("url_mode", "signed"),
        signed_url_ttl_minutes=int(store_cfg.get("signed_url_ttl_minutes", 60 * 24 * 7)),
    )
