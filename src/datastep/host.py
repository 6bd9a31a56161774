"""Capabilities a step consumes from its host application.

Datastores and tables are owned by the host. A step only ever holds
transient references to them while an operation runs, so everything here
is an interface; ``datastep.local`` provides a filesystem-backed
implementation.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

from .types import UserID


class Table(ABC):
    """A named, file-backed dataset inside a datastore."""

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Name shown to users."""
        ...

    @abstractmethod
    def attribute_names(self) -> List[str]:
        """Column names of the table."""
        ...

    @abstractmethod
    def open_file(self) -> Path:
        """Path of the file backing the table."""
        ...

    @abstractmethod
    def clear_cached_data(self, user_id: UserID) -> None:
        """Drop the cached rows held for a user."""
        ...

    @abstractmethod
    def cache_data(self, user_id: UserID) -> None:
        """Start rebuilding the cache for a user.

        Returns immediately; the rebuild runs asynchronously.
        """
        ...

    @abstractmethod
    def is_caching(self, user_id: UserID) -> bool:
        """Whether a cache rebuild for a user is still running."""
        ...

    @abstractmethod
    def row_count(self, user_id: UserID) -> int:
        """Number of cached rows. Only valid once caching has finished."""
        ...

    @abstractmethod
    def delete_file(self, user_id: UserID) -> None:
        """Remove the table's backing file."""
        ...


class Datastore(ABC):
    """A named collection of tables."""

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Name shown to users."""
        ...

    @property
    @abstractmethod
    def is_import(self) -> bool:
        """Whether this is the user's personal import datastore."""
        ...

    @abstractmethod
    def tables(self, user_id: UserID) -> List[Table]:
        """Tables visible to a user, as of the last refresh."""
        ...

    @abstractmethod
    def refresh_synchronous(self) -> None:
        """Re-scan backing storage, blocking until done."""
        ...

    @abstractmethod
    def create_new_table(self, file_name: str) -> Path:
        """Path for a new table file.

        The file itself is not created; the caller writes it and then
        refreshes the datastore.
        """
        ...


class Host(ABC):
    """Directory of datastores exposed by the host application."""

    @abstractmethod
    def list_datastores(self, user_id: UserID) -> List[Datastore]:
        """Datastores accessible to a user, in host order."""
        ...
