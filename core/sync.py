"""
------------------------------------------------------------------------------
Project:        Subly
File:           core/sync.py
Version:        1.0.0
Description:    iCloud sync provider. Serializes the application snapshot
                into a single JSON document inside the iCloud container and
                reads back whatever another device wrote there. Conflict
                resolution is left to the caller.
------------------------------------------------------------------------------
"""

import uuid
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.commands import CloudCommands, CommandError
from core.logger import get_logger

logger = get_logger("sync")

SYNC_FILENAME = "subly-sync.json"
SYNC_CONFIG_KEY = "sync_config"


class SyncError(Exception):
    """Upload or download through the sync container failed."""


class SyncMeta(BaseModel):
    """Bookkeeping written next to the data so devices can compare snapshots."""
    model_config = ConfigDict(populate_by_name=True)

    last_synced_at: int = Field(0, alias="lastSyncedAt")
    updated_at: int = Field(0, alias="updatedAt")
    device_id: str = Field("", alias="deviceId")


class SyncPayload(BaseModel):
    """The full document stored in the container."""
    model_config = ConfigDict(populate_by_name=True)

    data: Dict[str, Any] = Field(default_factory=dict)
    meta: SyncMeta = Field(default_factory=SyncMeta)


def generate_device_id() -> str:
    return "dev_" + uuid.uuid4().hex[:8]


def load_device_id(db) -> str:
    """
    Returns this installation's device id from the 'config' table,
    generating and persisting one on first use.

    Args:
        db: A migrated DatabaseManager.
    """
    config = db.get_config_value(SYNC_CONFIG_KEY)
    if not isinstance(config, dict):
        config = {}
    device_id = config.get("deviceId")
    if not device_id:
        device_id = generate_device_id()
        config["deviceId"] = device_id
        db.set_config_value(SYNC_CONFIG_KEY, config)
        logger.info(f"Generated device id {device_id}")
    return str(device_id)


class ICloudSyncProvider:
    """
    Sync provider backed by the iCloud container commands.
    """

    type = "icloud"
    name = "iCloud"

    def __init__(self, commands: Optional[CloudCommands] = None,
                 filename: str = SYNC_FILENAME) -> None:
        self.commands: CloudCommands = commands or CloudCommands()
        self.filename: str = filename

    def is_available(self) -> bool:
        return self.commands.container_url() is not None

    def upload(self, payload: SyncPayload) -> None:
        """
        Overwrites the remote document with the given snapshot.

        Raises:
            SyncError: If the container is unavailable or the write fails.
        """
        body = payload.model_dump_json(by_alias=True)
        try:
            self.commands.write_file(self.filename, body)
        except CommandError as e:
            raise SyncError(f"iCloud upload failed: {e}") from e
        logger.info(f"Uploaded snapshot from {payload.meta.device_id or 'unknown device'}")

    def download(self) -> Optional[SyncPayload]:
        """
        Returns the remote snapshot, or None if no device has uploaded yet.

        Raises:
            SyncError: If the container is unavailable, the read fails or the
                remote document is not a valid payload.
        """
        try:
            raw = self.commands.read_file(self.filename)
        except CommandError as e:
            raise SyncError(f"iCloud download failed: {e}") from e
        if raw is None:
            return None
        try:
            return SyncPayload.model_validate_json(raw)
        except ValidationError as e:
            raise SyncError(f"Remote snapshot is malformed: {e}") from e

    def get_remote_meta(self) -> Optional[SyncMeta]:
        payload = self.download()
        return payload.meta if payload else None
