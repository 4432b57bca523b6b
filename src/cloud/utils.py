"""
Utility functions for cloud operations.
"""

import logging


def check_cloud_config(config):
    """
    Check if the cloud configuration is valid.

    Args:
        config: Cloud configuration dictionary

    Returns:
        Boolean indicating if the configuration is valid
    """
    if not isinstance(config, dict) or not isinstance(config.get('gcp'), dict):
        logging.error("Invalid cloud configuration: missing 'gcp' section")
        return False

    required_settings = [
        'project_id',
        'credentials_file',
        'storage.bucket_name',
    ]

    for setting in required_settings:
        value = config['gcp']
        for part in setting.split('.'):
            if not isinstance(value, dict) or part not in value:
                logging.error(f"Invalid cloud configuration: missing 'gcp.{setting}'")
                return False
            value = value[part]

    url_mode = config['gcp']['storage'].get('url_mode', 'signed')
    if url_mode not in ('signed', 'public', 'gs'):
        logging.error(f"Invalid cloud configuration: unknown url_mode '{url_mode}'")
        return False

    return True


def format_cloud_path(bucket_name, folder, filename):
    """
    Format a cloud storage path.

    Args:
        bucket_name: Name of the storage bucket
        folder: Folder path
        filename: Filename

    Returns:
        Formatted cloud path
    """
    return f"gs://{bucket_name}/{folder}/{filename}"
