"""
------------------------------------------------------------------------------
Project:        Subly
File:           core/commands.py
Version:        1.0.0
Description:    Synchronous command surface the rest of the application calls
                to reach the iCloud document store. Errors cross this boundary
                as CommandError carrying a plain message string.
------------------------------------------------------------------------------
"""

from typing import Any, Callable, Dict, Optional

from core.cloud_store import CloudDocumentStore, CloudStoreError


class CommandError(Exception):
    """A command failed; str(error) is the message shown to callers."""


class CloudCommands:
    """
    Wraps a CloudDocumentStore with string-typed results.
    """

    def __init__(self, store: Optional[CloudDocumentStore] = None) -> None:
        self.store: CloudDocumentStore = store or CloudDocumentStore()
        self._registry: Dict[str, Callable[..., Any]] = {
            "icloud_container_url": self.container_url,
            "icloud_write_file": self.write_file,
            "icloud_read_file": self.read_file,
        }

    def container_url(self) -> Optional[str]:
        """The resolved container path, or None if unavailable."""
        container = self.store.resolve_container()
        return str(container) if container is not None else None

    def write_file(self, filename: str, contents: str) -> None:
        try:
            self.store.write(filename, contents)
        except (CloudStoreError, OSError) as e:
            raise CommandError(str(e)) from e

    def read_file(self, filename: str) -> Optional[str]:
        """Returns None when the document does not exist yet."""
        try:
            return self.store.read(filename)
        except (CloudStoreError, OSError) as e:
            raise CommandError(str(e)) from e

    def invoke(self, name: str, **kwargs: Any) -> Any:
        """
        Dispatches a command by name, e.g.
        invoke("icloud_write_file", filename="a.json", contents="{}").

        Raises:
            CommandError: Unknown command, bad arguments or a failed command.
        """
        handler = self._registry.get(name)
        if handler is None:
            raise CommandError(f"Unknown command: {name}")
        try:
            return handler(**kwargs)
        except TypeError as e:
            raise CommandError(f"Invalid arguments for {name}: {e}") from e
