STATE_DIR_NAME = ".task_ledger"
STORE_FILE = "ledger.yaml"
LOCK_FILE = "ledger.lock"
CONFIG_FILE = "config.yaml"
STORE_SCHEMA_VERSION = 1

STATE_DIR_ENV = "TASK_LEDGER_HOME"
DIST_DIR_ENV = "TASK_LEDGER_DIST_DIR"

DEFAULT_MODULE_NAME = "Default"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOCK_TIMEOUT = -1  # wait forever
DEFAULT_SUMMARY_START = "2026-01-01"
DEFAULT_WEEK_STARTS_ON = 0  # Monday

MODULES_TABLE = "modules"
TASKS_TABLE = "tasks"
ALL_TABLES = frozenset({MODULES_TABLE, TASKS_TABLE})

UNKNOWN_MODULE_LABEL = "Unknown module"
