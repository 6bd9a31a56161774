"""Creating, appending to and deleting file-backed tables."""

import logging
import threading
import time
from typing import Callable, Optional

from .errors import (
    AppendError,
    CacheTimeoutError,
    ProvisionError,
    SetupError,
    WaitInterrupted,
)
from .host import Datastore, Host, Table
from .types import PollConfig, ProvisionOutcome, UserID

logger = logging.getLogger(__name__)

EXPECTED_ATTRIBUTES = 3

SEED_LINES = [
    "heading1, heading2, heading3\n",
    "1, data1.1, data1.2\n",
    "2, data2.1, data2.2\n",
    "3, data3.1, data3.2\n",
]

APPEND_LINES = [
    "4, data4.1, data4.2\n",
    "5, data5.1, data5.2\n",
    "6, data6.1, data6.2\n",
]


def find_import_datastore(host: Host, user_id: UserID) -> Datastore:
    """Get the user's personal import datastore."""
    for ds in host.list_datastores(user_id):
        if ds.is_import:
            return ds
    raise SetupError("Could not find import datastore")


def find_table(
    datastore: Datastore, table_name: str, user_id: UserID
) -> Optional[Table]:
    """Find a table by name, ignoring case."""
    wanted = table_name.casefold()
    for table in datastore.tables(user_id):
        if table.display_name.casefold() == wanted:
            return table
    return None


def ensure_table(
    datastore: Datastore, file_name: str, user_id: UserID
) -> ProvisionOutcome:
    """Create a seeded table file in the datastore unless it already exists.

    The datastore is refreshed before and after writing so the host indexes
    the new file as a table. If the refreshed datastore does not list more
    tables than before, ``ProvisionError`` is raised: the file was written
    but no table appeared for it.
    """
    datastore.refresh_synchronous()
    before = len(datastore.tables(user_id))

    path = datastore.create_new_table(file_name)
    try:
        with open(path, "x", encoding="utf-8") as f:
            f.writelines(SEED_LINES)
    except FileExistsError:
        logger.info("Table file %s already exists", file_name)
        return ProvisionOutcome.ALREADY_EXISTS
    except OSError as e:
        raise ProvisionError(f"Failed to create {file_name}: {e}") from e

    datastore.refresh_synchronous()
    after = len(datastore.tables(user_id))
    if after <= before:
        # Another actor may have removed tables while this ran.
        raise ProvisionError("Table creation failed")

    logger.info(
        "Created table file %s in %s", file_name, datastore.display_name
    )
    return ProvisionOutcome.CREATED


def wait_for_cache(
    table: Table,
    user_id: UserID,
    poll: PollConfig = PollConfig(),
    cancel: Optional[threading.Event] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Block until the table has finished caching for the user.

    Polls ``table.is_caching`` with no timeout unless ``poll.timeout_ms``
    is positive. Setting ``cancel`` ends the wait with ``WaitInterrupted``.
    """
    started = time.monotonic()
    deadline = None
    if poll.timeout_ms > 0:
        deadline = started + poll.timeout_ms / 1000
    interval_ms = poll.interval_ms

    while table.is_caching(user_id):
        delay = interval_ms / 1000
        if deadline is not None:
            now = time.monotonic()
            if now >= deadline:
                waited = int((now - started) * 1000)
                raise CacheTimeoutError(
                    f"Table {table.display_name} still caching after "
                    f"{waited}ms",
                    waited_ms=waited,
                )
            delay = min(delay, deadline - now)
        logger.debug(
            "Waiting %dms for %s to cache", interval_ms, table.display_name
        )
        if cancel is None:
            sleep(delay)
        elif cancel.wait(delay):
            raise WaitInterrupted(
                f"Stopped waiting for {table.display_name} to cache"
            )
        interval_ms = poll.next_interval(interval_ms)


def append_and_wait(
    datastore: Datastore,
    table_name: str,
    user_id: UserID,
    poll: PollConfig = PollConfig(),
    cancel: Optional[threading.Event] = None,
) -> int:
    """Append fixed rows to a table, re-cache it and return its row count."""
    table = find_table(datastore, table_name, user_id)
    if table is None:
        raise AppendError(f"Table {table_name} not found")

    try:
        attributes = table.attribute_names()
    except (OSError, UnicodeDecodeError) as e:
        raise AppendError(f"Failed to read {table_name}: {e}") from e
    if len(attributes) != EXPECTED_ATTRIBUTES:
        raise AppendError(
            f"Incorrect number of attributes: expected "
            f"{EXPECTED_ATTRIBUTES}, found {len(attributes)}"
        )

    try:
        with open(table.open_file(), "a", encoding="utf-8") as f:
            f.writelines(APPEND_LINES)
    except OSError as e:
        raise AppendError(f"Failed to write to file: {e}") from e

    table.clear_cached_data(user_id)
    table.cache_data(user_id)
    wait_for_cache(table, user_id, poll, cancel)

    rows = table.row_count(user_id)
    logger.info("Table %s now has %d rows", table.display_name, rows)
    return rows


def delete_table_if_present(
    datastore: Datastore, table_name: str, user_id: UserID
) -> bool:
    """Delete a table if it exists, then refresh the datastore."""
    table = find_table(datastore, table_name, user_id)
    if table is not None:
        table.delete_file(user_id)
        logger.warning(
            "Deleted table %s from %s", table_name, datastore.display_name
        )
    datastore.refresh_synchronous()
    return table is not None
