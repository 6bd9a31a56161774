"""Filesystem-backed host used for tests and local runs."""

import logging
import threading
import time
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .host import Datastore, Host, Table
from .types import UserID

logger = logging.getLogger(__name__)

TABLE_SUFFIXES = (".txt", ".csv")


class LocalTable(Table):
    """A delimited text file treated as a table.

    The first line is the header; every other non-blank line is a row.
    Caching counts rows on a background thread, optionally after
    ``cache_delay`` seconds.
    """

    def __init__(self, path: Path, cache_delay: float = 0.0) -> None:
        self._path = path
        self._cache_delay = cache_delay
        self._lock = threading.Lock()
        self._row_counts: Dict[UserID, int] = {}
        self._workers: Dict[UserID, threading.Thread] = {}

    @property
    def display_name(self) -> str:
        return self._path.stem

    def attribute_names(self) -> List[str]:
        with open(self._path, encoding="utf-8") as f:
            header = f.readline().strip()
        if not header:
            return []
        return [name.strip() for name in header.split(",")]

    def open_file(self) -> Path:
        return self._path

    def clear_cached_data(self, user_id: UserID) -> None:
        with self._lock:
            self._row_counts.pop(user_id, None)

    def cache_data(self, user_id: UserID) -> None:
        worker = threading.Thread(
            target=self._build_cache, args=(user_id,), daemon=True
        )
        with self._lock:
            self._workers[user_id] = worker
        worker.start()

    def is_caching(self, user_id: UserID) -> bool:
        with self._lock:
            return user_id in self._workers

    def row_count(self, user_id: UserID) -> int:
        with self._lock:
            return self._row_counts.get(user_id, 0)

    def delete_file(self, user_id: UserID) -> None:
        self._path.unlink()
        with self._lock:
            self._row_counts.clear()

    def _build_cache(self, user_id: UserID) -> None:
        try:
            if self._cache_delay > 0:
                time.sleep(self._cache_delay)
            count = self._count_rows()
            with self._lock:
                self._row_counts[user_id] = count
        except (OSError, UnicodeDecodeError):
            logger.exception("Failed to cache table %s", self.display_name)
        finally:
            with self._lock:
                if self._workers.get(user_id) is threading.current_thread():
                    del self._workers[user_id]

    def _count_rows(self) -> int:
        with open(self._path, encoding="utf-8") as f:
            lines = f.read().splitlines()
        return sum(1 for line in lines[1:] if line.strip())


class LocalDatastore(Datastore):
    """A directory of table files.

    Tables reflect the directory as of the last ``refresh_synchronous``.
    When ``owner`` is set only that user can see the datastore.
    """

    def __init__(
        self,
        name: str,
        root: Path,
        is_import: bool = False,
        owner: Optional[UserID] = None,
        cache_delay: float = 0.0,
        suffixes: Sequence[str] = TABLE_SUFFIXES,
    ) -> None:
        self._name = name
        self._root = Path(root)
        self._is_import = is_import
        self._owner = owner
        self._cache_delay = cache_delay
        self._suffixes = tuple(suffixes)
        self._tables: Dict[Path, LocalTable] = {}
        self._root.mkdir(parents=True, exist_ok=True)
        self.refresh_synchronous()

    @property
    def display_name(self) -> str:
        return self._name

    @property
    def is_import(self) -> bool:
        return self._is_import

    @property
    def root(self) -> Path:
        return self._root

    def visible_to(self, user_id: UserID) -> bool:
        return self._owner is None or self._owner == user_id

    def tables(self, user_id: UserID) -> List[Table]:
        if not self.visible_to(user_id):
            return []
        return list(self._tables.values())

    def refresh_synchronous(self) -> None:
        tables: Dict[Path, LocalTable] = {}
        for path in sorted(self._root.iterdir()):
            if not path.is_file() or path.suffix not in self._suffixes:
                continue
            tables[path] = self._tables.get(path) or LocalTable(
                path, cache_delay=self._cache_delay
            )
        self._tables = tables
        logger.debug(
            "Refreshed datastore %s: %d tables", self._name, len(tables)
        )

    def create_new_table(self, file_name: str) -> Path:
        if Path(file_name).name != file_name:
            raise ValueError(f"Invalid table file name: {file_name}")
        return self._root / file_name


class LocalHost(Host):
    """Host exposing a fixed set of local datastores."""

    def __init__(self, datastores: Iterable[LocalDatastore] = ()) -> None:
        self._datastores: List[LocalDatastore] = list(datastores)

    def add(self, datastore: LocalDatastore) -> None:
        self._datastores.append(datastore)

    def remove(self, name: str) -> None:
        self._datastores = [
            ds for ds in self._datastores if ds.display_name != name
        ]

    def list_datastores(self, user_id: UserID) -> List[Datastore]:
        return [ds for ds in self._datastores if ds.visible_to(user_id)]
