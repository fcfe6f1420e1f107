"""Application-wide constants."""

# Version info
APP_NAME = "slackpipe"
APP_DESCRIPTION = "Pipe command output into a Slack channel"

# Message limits
SLACK_MAX_MESSAGE_LENGTH = 4000

# 1 message per 2 seconds
DEFAULT_RATE_LIMIT_WINDOW = 2.0

# Retry policy
DEFAULT_RETRY_AFTER_SECONDS = 60
DEFAULT_SERVER_ERROR_BACKOFF = 60
DEFAULT_HTTP_TIMEOUT = 30.0

# Destination
DEFAULT_CHANNEL = "chatops"
DEFAULT_PARSE_MODE = "full"
CONFIG_SEARCH_PATHS = (
    "/etc/slackchannels.toml",
    "~/.slackchannels.toml",
    "./slackchannels.toml",
)

# Logging
DEFAULT_LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_LOG_FILE_BACKUPS = 5
