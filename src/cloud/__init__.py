"""
Blob storage for captured stills (Google Cloud Storage or local disk).
"""

from .storage import BlobHandle, BlobStore, GcsBlobStore, LocalBlobStore, create_gcs_blob_store
from .publisher import ArtifactPublisher
from .utils import check_cloud_config, format_cloud_path

__all__ = [
    'BlobHandle',
    'BlobStore',
    'GcsBlobStore',
    'LocalBlobStore',
    'create_gcs_blob_store',
    'ArtifactPublisher',
    'check_cloud_config',
    'format_cloud_path',
]
