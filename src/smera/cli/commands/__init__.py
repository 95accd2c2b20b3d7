# smera/cli/commands: command groups for the Smera CLI.

from .config_cmd import config_app
from .queue import queue_app

__all__ = ["config_app", "queue_app"]
