"""jiratrack - log time against your Jira issues from the terminal."""

from jiratrack.logging_config import configure_logging
from jiratrack.logging_config import get_logger
from jiratrack.version import get_version

__version__ = get_version()

__all__ = ["__version__", "configure_logging", "get_logger", "get_version"]
