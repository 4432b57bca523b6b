"""
Inventory camera service.

Starts the web interface: an inventory list with manual add/remove, plus a
camera capture flow that stores each still and adds detected objects to the
inventory.

Usage:
    python src/main.py --config config/config.yaml

Arguments:
    --config: Path to configuration file
    --host / --port: Override the web server bind address
"""

import os
import sys
import argparse
import logging
from typing import Any, Dict, Optional, Tuple

import uvicorn
import yaml

from cloud.utils import check_cloud_config
from models.config import Config
from ops.logging import setup_logging
from runtime.context import build_context
from web.app import create_app


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        config_dir = os.path.dirname(config_path)
        base_path = os.path.join(config_dir, "default.yaml")
        merged: Dict[str, Any] = _read_yaml(base_path) if os.path.exists(base_path) else {}

        local_overrides_path = os.path.join(config_dir, "config.yaml")
        if os.path.exists(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(local_overrides_path))

        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(config_path))

        return merged
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def load_cloud_config(config_path: str) -> Optional[Dict[str, Any]]:
    """Load `cloud_config.yaml` next to the config file, or None for local-only mode."""
    cloud_config_path = os.path.join(os.path.dirname(config_path), "cloud_config.yaml")
    if not os.path.exists(cloud_config_path):
        logging.info("Cloud configuration not found, running in local-only mode")
        return None

    try:
        cloud_config = _read_yaml(cloud_config_path)
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Error loading cloud configuration: {e}")
        return None

    if not check_cloud_config(cloud_config):
        logging.warning("Invalid cloud configuration, running in local-only mode")
        return None

    logging.info("Cloud configuration loaded")
    return cloud_config


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'capture', 'detection', 'storage', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Camera
    camera = config.get('camera', {}) or {}
    if camera.get('backend', 'opencv') != 'opencv':
        return False, "camera.backend must be: opencv"
    device_id = camera.get('device_id', 0)
    if isinstance(device_id, bool) or not isinstance(device_id, (int, str)):
        return False, "camera.device_id must be an integer (index) or string (URL/path)"
    if isinstance(device_id, int) and device_id < 0:
        return False, "camera.device_id integer must be non-negative"
    if 'resolution' in camera:
        res = camera['resolution']
        if not isinstance(res, list) or len(res) != 2 or not all(isinstance(x, int) and x > 0 for x in res):
            return False, "camera.resolution must be a list of two positive integers [width, height]"
    if 'fps' in camera and (not isinstance(camera['fps'], int) or camera['fps'] <= 0):
        return False, "camera.fps must be a positive integer"
    if 'open_attempts' in camera and (not isinstance(camera['open_attempts'], int) or camera['open_attempts'] < 1):
        return False, "camera.open_attempts must be a positive integer"
    if camera.get('rotate', 0) not in (0, 90, 180, 270):
        return False, "camera.rotate must be one of 0, 90, 180, 270"

    # Capture raster
    capture = config.get('capture', {}) or {}
    for key in ('width', 'height'):
        value = capture.get(key, 1)
        if not isinstance(value, int) or value <= 0:
            return False, f"capture.{key} must be a positive integer"
    if capture.get('image_format', 'png') not in ('png', 'jpg', 'jpeg'):
        return False, "capture.image_format must be one of: png, jpg, jpeg"

    # Detection model
    detection = config.get('detection', {}) or {}
    if not isinstance(detection.get('model'), str) or not detection.get('model'):
        return False, "detection.model is required"
    for key in ('conf_threshold', 'iou_threshold'):
        if key in detection:
            value = detection[key]
            if not isinstance(value, (int, float)) or not (0 <= value <= 1):
                return False, f"detection.{key} must be a number between 0 and 1"

    # Storage
    storage = config.get('storage', {}) or {}
    if not isinstance(storage.get('local_database_path'), str):
        return False, "Missing storage.local_database_path"
    if storage.get('blob_backend', 'local') not in ('local', 'gcs'):
        return False, "storage.blob_backend must be one of: local, gcs"

    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Inventory Camera')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--host', type=str, default=None, help='Web server host')
    parser.add_argument('--port', type=int, default=None, help='Web server port')
    args = parser.parse_args()

    raw_config = load_config(args.config)

    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(raw_config['log_path'], raw_config['log_level'])
    logging.info("Starting Inventory Camera")

    config = Config.from_dict(raw_config, cloud=load_cloud_config(args.config))
    ctx = build_context(config)

    host = args.host or config.web.host
    port = args.port or config.web.port
    logging.info(f"Web interface starting on {host}:{port}")
    uvicorn.run(create_app(ctx), host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
