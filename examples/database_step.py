"""Database step example.

Serves the database step against local datastores under ./datastores:
"imports" is user 1's personal import datastore, "shared" is visible to
everyone.
"""

import logging
import os
from pathlib import Path

from datastep import Client, LocalDatastore, LocalHost
from datastep.step import (
    database_choices,
    database_complete,
    database_step_builder,
    run_database_step,
)

HOST_URL = os.getenv("DATASTEP_HOST_URL", "http://localhost:8080")
DATA_DIR = Path(os.getenv("DATASTEP_DATA_DIR", "datastores"))

client = Client(HOST_URL)

host = LocalHost(
    [
        LocalDatastore("My Files", DATA_DIR / "imports", is_import=True, owner=1),
        LocalDatastore("Shared", DATA_DIR / "shared", cache_delay=0.5),
    ]
)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    database_step_builder(client).start(
        run_database_step,
        host,
        choices=database_choices,
        complete=database_complete,
    )
