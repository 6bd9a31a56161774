"""Example step exercising datastore choosers and file-backed tables.

It covers two scenarios:

1. Choosing a datastore and one of its tables, and resolving the
   selection to a table object.
2. Creating a file in the user's import datastore if necessary, then
   appending to it every time the step runs.
"""

import logging
import threading
from typing import List, Optional

from .builder import StepBuilder
from .client import Client
from .errors import AppendError, HTTPError, ProvisionError
from .handlers import StepContext
from .host import Host
from .selection import (
    datastore_icon,
    datastore_names,
    datastore_text,
    is_complete,
    resolve_table,
    select_datastore,
    select_table,
    table_icon,
    table_names,
    table_text,
)
from .tables import (
    append_and_wait,
    delete_table_if_present,
    ensure_table,
    find_import_datastore,
)
from .types import (
    Args,
    IconType,
    PollConfig,
    ProvisionOutcome,
    RunReport,
    Selection,
    StepResult,
    UserID,
)

logger = logging.getLogger(__name__)

STEP_NAME = "Custom - Database Test"
STEP_DESCRIPTION = (
    "Demonstrates table chooser and creating/appending to a file table"
)
STEP_ICON = "DATABASE"

DATASTORE_PROPERTY = "datastore"
TABLE_PROPERTY = "table"

FILE_NAME = "sdkexample.txt"
TABLE_NAME = "sdkexample"


def database_step_builder(client: Optional[Client] = None) -> StepBuilder:
    """Definition of the database step."""
    return (
        StepBuilder(client, STEP_NAME)
        .with_description(STEP_DESCRIPTION)
        .with_icon(STEP_ICON)
        .process_only()
        .chooser(DATASTORE_PROPERTY, "Datastore")
        .chooser(TABLE_PROPERTY, "Table")
    )


class DatabaseStep:
    """The database step for one user session.

    Holds the datastore/table selection made through the choosers.
    """

    def __init__(
        self,
        host: Host,
        user_id: UserID,
        selection: Optional[Selection] = None,
        poll: Optional[PollConfig] = None,
    ) -> None:
        self.host = host
        self.user_id = user_id
        self.poll = poll or PollConfig()
        self._selection = selection or Selection()

    @property
    def selection(self) -> Selection:
        return self._selection

    def datastore_choices(self) -> List[str]:
        return datastore_names(self.host, self.user_id)

    def table_choices(self) -> List[str]:
        return table_names(self.host, self.user_id, self._selection.datastore)

    def choose_datastore(self, name: Optional[str]) -> str:
        """Select a datastore and return the chooser's display text."""
        self._selection = select_datastore(self._selection, name)
        return datastore_text(self._selection)

    def choose_table(self, name: Optional[str]) -> str:
        """Select a table and return the chooser's display text."""
        self._selection = select_table(self._selection, name)
        return table_text(self._selection)

    def datastore_icon(self) -> IconType:
        return datastore_icon(self._selection)

    def table_icon(self) -> IconType:
        return table_icon(self._selection)

    def is_complete(self) -> bool:
        """Whether the step can execute, export and show its rows."""
        return is_complete(self.host, self.user_id, self._selection)

    def execute(
        self,
        args: Optional[Args] = None,
        cancel: Optional[threading.Event] = None,
    ) -> StepResult:
        """Run the step.

        Raises ``SetupError`` if the user has no import datastore. Failures
        to provision or append are reported in the result's outputs.
        """
        args = args or {}
        ds = find_import_datastore(self.host, self.user_id)

        provision: Optional[ProvisionOutcome] = None
        provision_error = ""
        try:
            provision = ensure_table(ds, FILE_NAME, self.user_id)
        except ProvisionError as e:
            logger.warning("Could not provision %s: %s", FILE_NAME, e)
            provision_error = str(e)

        row_count: Optional[int] = None
        append_error = ""
        cleaned_up = False
        try:
            row_count = append_and_wait(
                ds, TABLE_NAME, self.user_id, self.poll, cancel
            )
        except AppendError as e:
            logger.warning("Could not append to %s: %s", TABLE_NAME, e)
            append_error = str(e)
            cleaned_up = delete_table_if_present(ds, TABLE_NAME, self.user_id)

        configured = Selection(
            datastore=args.get(DATASTORE_PROPERTY, self._selection.datastore),
            table=args.get(TABLE_PROPERTY, self._selection.table),
        )
        resolved = configured.is_set and (
            resolve_table(
                self.host, self.user_id, configured.datastore, configured.table
            )
            is not None
        )
        if not resolved:
            logger.warning(
                "Configured table %s/%s could not be resolved",
                configured.datastore,
                configured.table,
            )

        report = RunReport(
            provision=provision,
            provision_error=provision_error,
            row_count=row_count,
            append_error=append_error,
            cleaned_up=cleaned_up,
            selection_resolved=resolved,
        )
        return StepResult(success=True, outputs=report.to_dict())


def _selection_from(args: Args) -> Selection:
    return Selection(
        datastore=args.get(DATASTORE_PROPERTY) or None,
        table=args.get(TABLE_PROPERTY) or None,
    )


def run_database_step(ctx: StepContext, args: Args) -> StepResult:
    """Step handler executing the database step."""
    step = DatabaseStep(
        ctx.host, ctx.user_id, _selection_from(args), PollConfig.from_env()
    )
    return step.execute(args)


def database_choices(ctx: StepContext, name: str, args: Args) -> List[str]:
    """Allowed values for one of the database step's choosers."""
    step = DatabaseStep(ctx.host, ctx.user_id, _selection_from(args))
    if name == DATASTORE_PROPERTY:
        return step.datastore_choices()
    if name == TABLE_PROPERTY:
        return step.table_choices()
    raise HTTPError(404, f"Unknown property: {name}")


def database_complete(ctx: StepContext, args: Args) -> bool:
    return DatabaseStep(ctx.host, ctx.user_id, _selection_from(args)).is_complete()
