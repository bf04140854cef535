"""Engine-wide defaults."""

DEFAULT_MAX_EXECUTIONS = 1000
DEFAULT_DELAY_MS = 1000
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_MS = 1000
DEFAULT_WORKFLOWS_DIR = "./workflows"
DEFAULT_TOOL_TIMEOUT = 30.0
