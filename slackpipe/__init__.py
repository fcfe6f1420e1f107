"""slackpipe.

Relay the output of a long-running command into a Slack channel through an
incoming webhook, batching lines so the webhook's rate and size limits are
respected without dropping output.
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Development status indicators
__status__ = "Alpha"
