"""Common constants used across branchcov."""

# Hook categories as named by the instrumentation host
HOOK_IF = "if"
HOOK_BR_IF = "br_if"
HOOK_BR_TABLE = "br_table"
HOOK_SELECT = "select"
HOOK_ALL = "all"

BRANCH_HOOKS = (HOOK_IF, HOOK_BR_IF, HOOK_BR_TABLE, HOOK_SELECT)

REPORT_LINE_FORMAT = "function {function} instruction {instruction} branches covered: [{values}]"

# Redis defaults for the shared table
DEFAULT_REDIS_URL = "redis://localhost:6379/0"
REDIS_KEY_PREFIX = "branchcov"
