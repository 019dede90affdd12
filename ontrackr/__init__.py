"""
This is the main package for OnTrackr reminders.

- ``reminders`` - fetching, polling and managing OnTrackr reminders.
- ``notifications`` - desktop notifications and notification permission.
- ``cli`` - the OnTrackr command-line interface.
- ``helpers`` - helpers used across the package.

"""

from . import helpers

__all__ = ['helpers', ]
