"""Shared constants for vcsflow."""

# Substrings of git's output that mean the remote wants (other) credentials
AUTH_ERROR_MESSAGES = (
    "Invalid username or password",
    "could not read Username",
    "could not read Password",
    "Authentication failed",
)

SETTINGS_FILENAME = ".vcsflow.env"

DEFAULT_READY_POLL_INTERVAL = 1.0
DEFAULT_READY_MAX_POLLS = 300
DEFAULT_GIT_TIMEOUT = 30
DEFAULT_REMOTE_TIMEOUT = 120
DEFAULT_REMOTE = "origin"
DEFAULT_NEW_BRANCH_PREFIX = "publish"

# Sentinel result for an operation kind the runner does not know
UNKNOWN_OPERATION_CODE = -1
UNKNOWN_OPERATION_MESSAGE = "Unknown git command"
