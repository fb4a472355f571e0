"""Process exit codes for the autotable CLI."""

SUCCESS = 0
GENERAL_ERROR = 1
USAGE_ERROR = 2
DATABASE_ERROR = 3
NOT_FOUND = 4
IMPORT_FAILURE = 5
SCHEMA_DROP_SAFETY = 6
