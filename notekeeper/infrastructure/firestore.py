"""
Firestore client configuration and initialization.

Auto-detects the emulator via FIRESTORE_EMULATOR_HOST and otherwise uses
Application Default Credentials.
"""

import logging
import os
from typing import Optional

from google.cloud.firestore_v1 import AsyncClient

logger = logging.getLogger(__name__)

_firestore_client: Optional[AsyncClient] = None


def get_project_id() -> Optional[str]:
    """GCP project from GCP_PROJECT_ID, falling back to GOOGLE_CLOUD_PROJECT."""
    return os.getenv("GCP_PROJECT_ID") or os.getenv("GOOGLE_CLOUD_PROJECT")


def get_firestore_client() -> AsyncClient:
    """
    Get the Firestore async client singleton.

    Raises:
        ValueError: If no GCP project is configured
    """
    global _firestore_client

    if _firestore_client is not None:
        return _firestore_client

    project_id = get_project_id()
    if not project_id:
        raise ValueError(
            "GCP_PROJECT_ID or GOOGLE_CLOUD_PROJECT must be set for Firestore"
        )

    _firestore_client = AsyncClient(project=project_id)

    emulator_host = os.getenv("FIRESTORE_EMULATOR_HOST")
    if emulator_host:
        logger.info(f"Using Firestore emulator at {emulator_host}")
    else:
        logger.info(f"Firestore client initialized for project: {project_id}")

    return _firestore_client


async def close_firestore_client() -> None:
    """Close the Firestore client connection, if one was opened."""
    global _firestore_client

    if _firestore_client is not None:
        _firestore_client.close()
        _firestore_client = None
        logger.info("Firestore client closed")


def reset_firestore_client() -> None:
    """Drop the singleton without closing it (tests)."""
    global _firestore_client
    _firestore_client = None
