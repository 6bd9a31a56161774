"""Datastore and table choosers and validation of their selection."""

import logging
from dataclasses import replace
from typing import List, Optional

from .host import Datastore, Host, Table
from .types import IconType, Selection, UserID

logger = logging.getLogger(__name__)

SELECT_DATASTORE = "<Select a datastore>"
SELECT_TABLE = "<Select a table>"


def datastore_names(host: Host, user_id: UserID) -> List[str]:
    """Names of the datastores accessible to the user."""
    return [ds.display_name for ds in host.list_datastores(user_id)]


def find_datastore(
    host: Host, user_id: UserID, name: str
) -> Optional[Datastore]:
    for ds in host.list_datastores(user_id):
        if ds.display_name == name:
            return ds
    return None


def table_names(
    host: Host, user_id: UserID, datastore_name: Optional[str]
) -> List[str]:
    """Names of the tables in a datastore, or none if it is not set."""
    if not datastore_name:
        return []
    ds = find_datastore(host, user_id, datastore_name)
    if ds is None:
        return []
    return [t.display_name for t in ds.tables(user_id)]


def resolve_table(
    host: Host, user_id: UserID, datastore_name: str, table_name: str
) -> Optional[Table]:
    """Look up a table by exact datastore and table names."""
    ds = find_datastore(host, user_id, datastore_name)
    if ds is None:
        logger.debug("Datastore %s is not accessible", datastore_name)
        return None
    for table in ds.tables(user_id):
        if table.display_name == table_name:
            return table
    logger.debug("Table %s not found in %s", table_name, datastore_name)
    return None


def is_complete(host: Host, user_id: UserID, selection: Selection) -> bool:
    """Whether both choosers are set and still name live entities.

    Resolved against the host on every call, so a datastore or table
    removed since it was chosen makes the selection incomplete.
    """
    if not selection.is_set:
        return False
    return (
        resolve_table(host, user_id, selection.datastore, selection.table)
        is not None
    )


def select_datastore(selection: Selection, name: Optional[str]) -> Selection:
    """Choose a datastore. A different datastore clears the chosen table."""
    if name == selection.datastore:
        return selection
    return Selection(datastore=name, table=None)


def select_table(selection: Selection, name: Optional[str]) -> Selection:
    return replace(selection, table=name)


def datastore_text(selection: Selection) -> str:
    return selection.datastore or SELECT_DATASTORE


def table_text(selection: Selection) -> str:
    return selection.table or SELECT_TABLE


def datastore_icon(selection: Selection) -> IconType:
    return IconType.OK if selection.datastore else IconType.ERROR


def table_icon(selection: Selection) -> IconType:
    return IconType.OK if selection.table else IconType.ERROR
