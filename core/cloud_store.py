"""
------------------------------------------------------------------------------
Project:        Subly
File:           core/cloud_store.py
Version:        1.0.0
Description:    Capability-gated document store on top of the user's iCloud
                Drive folder. Documents live in a fixed application
                subdirectory that the OS sync daemon mirrors across devices.
                Availability is re-derived on every call and never cached.
------------------------------------------------------------------------------
"""

import sys
from pathlib import Path
from typing import Optional, Union

from core.logger import get_logger

logger = get_logger("cloud")

# Platforms that know the iCloud Drive convention
SUPPORTED_PLATFORMS = frozenset({"darwin"})

# Relative to the user's home directory
ICLOUD_DRIVE_RELATIVE = Path("Library") / "Mobile Documents" / "com~apple~CloudDocs"

APP_DIR_NAME = "Subly"


class CloudStoreError(Exception):
    """Base class for document store failures."""


class ContainerUnavailableError(CloudStoreError):
    """The sync container cannot be used on this machine right now."""

    def __init__(self, message: str = "iCloud container is not available") -> None:
        super().__init__(message)


class DocumentDecodeError(CloudStoreError):
    """A document in the container is not valid UTF-8 text."""


class CloudDocumentStore:
    """
    Reads and writes text documents inside the synced container.

    The three outcomes of a read stay distinct: ContainerUnavailableError
    (sync is not set up), None (this document does not exist yet) and the
    document contents.
    """

    def __init__(self, platform: Optional[str] = None,
                 home: Optional[Union[str, Path]] = None,
                 app_dir: str = APP_DIR_NAME) -> None:
        """
        Args:
            platform: sys.platform style identifier. Defaults to the running one.
            home: Home directory override. Defaults to Path.home() at call time.
            app_dir: Name of the application subdirectory inside the sync root.
        """
        self.platform: str = platform or sys.platform
        self._home: Optional[Path] = Path(home) if home is not None else None
        self.app_dir: str = app_dir

    @property
    def supports_platform(self) -> bool:
        return self.platform in SUPPORTED_PLATFORMS

    def sync_root(self) -> Optional[Path]:
        """The iCloud Drive root for this user, or None on unsupported platforms."""
        if not self.supports_platform:
            return None
        home = self._home if self._home is not None else Path.home()
        return home / ICLOUD_DRIVE_RELATIVE

    def resolve_container(self) -> Optional[Path]:
        """
        Computes the application container, creating the subdirectory if needed.

        Returns:
            The container path, or None if the platform lacks the convention,
            iCloud Drive is not enabled or the subdirectory cannot be created.
        """
        root = self.sync_root()
        if root is None:
            return None
        if not root.is_dir():
            logger.debug(f"iCloud Drive root not found at {root}")
            return None

        container = root / self.app_dir
        try:
            container.mkdir(exist_ok=True)
        except OSError as e:
            logger.warning(f"Cannot create iCloud container {container}: {e}")
            return None
        return container

    def is_available(self) -> bool:
        return self.resolve_container() is not None

    def _require_container(self) -> Path:
        container = self.resolve_container()
        if container is None:
            raise ContainerUnavailableError()
        return container

    def write(self, filename: str, contents: str) -> None:
        """
        Creates or overwrites a document. Last writer wins.

        Raises:
            ContainerUnavailableError: If the container cannot be resolved.
            OSError: Any filesystem failure, unchanged.
        """
        path = self._require_container() / filename
        path.write_text(contents, encoding="utf-8")
        logger.info(f"Wrote {len(contents)} chars to {path}")

    def read(self, filename: str) -> Optional[str]:
        """
        Reads a document.

        Returns:
            The contents, or None if the document does not exist.

        Raises:
            ContainerUnavailableError: If the container cannot be resolved.
            DocumentDecodeError: If the file is not valid UTF-8.
            OSError: Any other filesystem failure, unchanged.
        """
        path = self._require_container() / filename
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise DocumentDecodeError(f"{path} is not valid UTF-8: {e}") from e
