"""
This is the notifications package of OnTrackr. Here, you'll find the following:

- ``notifier.py`` - Contains the ``Notifier`` classes which display a notification, either through macOS Notification
Centre or the log.
- ``permission.py`` - Contains the ``NotificationPermission`` classes which decide whether notifications may be shown.
- ``notificationscript.py`` - Contains AppleScript scripts for displaying notifications.

"""

from . import notifier, permission, notificationscript

__all__ = ['notifier', 'permission', 'notificationscript', ]
