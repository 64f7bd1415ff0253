from __future__ import annotations

from datetime import timedelta

# Defaults for SinkOptions; only ever read through explicit configuration fields.
DEFAULT_TABLE_NAME = "Logs"
DEFAULT_BATCH_POSTING_LIMIT = 100
DEFAULT_PERIOD = timedelta(seconds=5)
DEFAULT_FAILURE_LIMIT = 8
DEFAULT_COLUMN_TYPE = "TEXT"
