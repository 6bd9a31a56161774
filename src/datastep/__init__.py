"""datastep: example step SDK for datastore choosers and file tables."""

from .builder import StepBuilder
from .client import Client
from .errors import (
    AppendError,
    CacheTimeoutError,
    ClientError,
    DatastepError,
    HTTPError,
    ProvisionError,
    SetupError,
    StepRegistrationError,
    StepValidationError,
    WaitInterrupted,
)
from .handlers import StepContext, StepHandler
from .host import Datastore, Host, Table
from .local import LocalDatastore, LocalHost, LocalTable
from .selection import is_complete, select_datastore, select_table
from .step import DatabaseStep, database_step_builder
from .tables import (
    append_and_wait,
    delete_table_if_present,
    ensure_table,
    find_import_datastore,
    find_table,
    wait_for_cache,
)
from .types import (
    Args,
    BackoffType,
    HTTPConfig,
    IconType,
    Metadata,
    PollConfig,
    ProvisionOutcome,
    RunReport,
    Selection,
    StepDefinition,
    StepID,
    StepProperty,
    StepPropertyType,
    StepResult,
    StepType,
    UserID,
)

__version__ = "0.1.0"

__all__ = [
    # Client
    "Client",
    # Builders
    "StepBuilder",
    "database_step_builder",
    # Handlers
    "StepContext",
    "StepHandler",
    # Host
    "Host",
    "Datastore",
    "Table",
    "LocalHost",
    "LocalDatastore",
    "LocalTable",
    # Step
    "DatabaseStep",
    "is_complete",
    "select_datastore",
    "select_table",
    "ensure_table",
    "append_and_wait",
    "wait_for_cache",
    "delete_table_if_present",
    "find_import_datastore",
    "find_table",
    # Types
    "StepDefinition",
    "StepProperty",
    "StepPropertyType",
    "StepResult",
    "StepType",
    "IconType",
    "BackoffType",
    "HTTPConfig",
    "PollConfig",
    "ProvisionOutcome",
    "RunReport",
    "Selection",
    # Type aliases
    "Args",
    "StepID",
    "UserID",
    "Metadata",
    # Errors
    "DatastepError",
    "SetupError",
    "ProvisionError",
    "AppendError",
    "WaitInterrupted",
    "CacheTimeoutError",
    "StepValidationError",
    "ClientError",
    "StepRegistrationError",
    "HTTPError",
]
