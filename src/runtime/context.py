from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from camera.camera import create_session_manager
from camera.capture import FrameCapturer
from camera.session import DeviceSessionManager
from cloud.publisher import ArtifactPublisher
from cloud.storage import BlobStore, LocalBlobStore, create_gcs_blob_store
from cloud.utils import check_cloud_config
from inference.classifier import ClassifierAdapter
from inference.cpu_backend import CpuYoloConfig, UltralyticsCpuLoader
from models.config import Config
from models.errors import ModelLoadFailed
from pipeline.orchestrator import CaptureOrchestrator
from storage.database import Database
from web.services.inventory_service import InventoryService


@dataclass
class RuntimeContext:
    """Holds runtime state and service references; avoids global singletons."""

    config: Config
    db: Database
    inventory: InventoryService
    camera: DeviceSessionManager
    blob_store: BlobStore
    classifier: ClassifierAdapter
    orchestrator: CaptureOrchestrator
    start_time: float = field(default_factory=time.time)

    @property
    def local_media_dir(self) -> Optional[str]:
        """Directory the web app serves blobs from, in local-only mode."""
        if isinstance(self.blob_store, LocalBlobStore):
            return self.blob_store.root_dir
        return None

    def shutdown(self) -> None:
        self.camera.stop()
        self.db.close()


def create_blob_store(config: Config) -> BlobStore:
    """
    Pick the blob store: GCS when configured and usable, otherwise local disk.
    """
    storage_cfg = config.storage
    if storage_cfg.blob_backend == "gcs":
        if config.cloud and check_cloud_config(config.cloud):
            store = create_gcs_blob_store(config.cloud)
            if store is not None:
                return store
        logging.warning("Cloud blob store unavailable, running in local-only mode")

    return LocalBlobStore(storage_cfg.local_blob_dir, url_prefix=storage_cfg.media_url_prefix)


def build_context(config: Config) -> RuntimeContext:
    db = Database(config.storage.local_database_path)
    db.initialize()
    inventory = InventoryService(db)

    camera = create_session_manager(config.camera)
    blob_store = create_blob_store(config)

    det = config.detection
    classifier = ClassifierAdapter(
        UltralyticsCpuLoader(
            CpuYoloConfig(
                model=det.model,
                conf_threshold=float(det.conf_threshold),
                iou_threshold=float(det.iou_threshold),
                classes=det.classes,
                class_name_overrides=det.class_name_overrides,
            )
        )
    )
    if det.preload:
        try:
            classifier.ensure_model_loaded()
        except ModelLoadFailed as e:
            logging.warning(f"Model preload failed; will retry on first capture: {e}")

    orchestrator = CaptureOrchestrator(
        capturer=FrameCapturer(
            width=config.capture.width,
            height=config.capture.height,
            image_format=config.capture.image_format,
        ),
        publisher=ArtifactPublisher(blob_store, folder=config.storage.images_folder),
        classifier=classifier,
        on_capture=inventory.handle_capture,
        concurrent_branches=config.pipeline.concurrent_branches,
    )

    return RuntimeContext(
        config=config,
        db=db,
        inventory=inventory,
        camera=camera,
        blob_store=blob_store,
        classifier=classifier,
        orchestrator=orchestrator,
    )
