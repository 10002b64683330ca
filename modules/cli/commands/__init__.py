"""
Admin Client Commands.

Organized by resource.
"""

from modules.cli.commands.health import app as health_app
from modules.cli.commands.opportunities import app as opportunities_app
from modules.cli.commands.submissions import app as submissions_app

__all__ = [
    "health_app",
    "opportunities_app",
    "submissions_app",
]
