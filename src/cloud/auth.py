"""
GCP authentication for the blob store.

Loads service account credentials from a JSON file.
"""

import os
import logging
from typing import Optional
from google.oauth2 import service_account
from google.auth import credentials as auth_credentials


def get_credentials(credentials_path: str) -> Optional[auth_credentials.Credentials]:
    """
    Load GCP service account credentials from a JSON file.

    Signed URLs need a private key, so a service account file is required
    rather than application default credentials.

    Args:
        credentials_path: Path to the service account JSON credentials file

    Returns:
        Service account credentials object, or None if loading failed
    """
    if not credentials_path:
        logging.error("Credentials path is empty")
        return None

    if not os.path.isfile(credentials_path):
        logging.error(f"Credentials file not found: {credentials_path}")
        return None

    try:
        creds = service_account.Credentials.from_service_account_file(credentials_path)
    except (ValueError, OSError) as e:
        logging.error(f"Failed to load credentials from {credentials_path}: {e}")
        return None

    logging.info(f"Loaded credentials for {creds.service_account_email}")
    return creds
