"""
Contains the ``Notifier`` classes, which display a notification to the user.
"""

from __future__ import annotations

import logging
import sys

from ontrackr import helpers
from ontrackr.notifications import notificationscript


class Notifier:
    """
    Base class for notifiers. Subclasses implement ``notify``.
    """

    #: Name used to select this notifier in the configuration file.
    NAME = ''

    def notify(self, title: str, body: str, tag: str) -> bool:
        """
        Display a notification.

        :param title: the notification title.
        :param body: the notification body.
        :param tag: identifies the notification; notifications sharing a tag refer to the same reminder.

        :return: True if the notification was displayed.
        """
        raise NotImplementedError


class AppleScriptNotifier(Notifier):
    """
    Displays notifications in macOS Notification Centre using ``osascript``.
    """

    NAME = 'applescript'

    def notify(self, title: str, body: str, tag: str) -> bool:
        try:
            return_code, stdout, stderr = helpers.run_applescript(notificationscript.display_notification_script,
                                                                  title, body)
        except OSError as e:
            logging.warning('Failed to display notification {}: {}'.format(tag, e))
            return False
        if return_code != 0:
            logging.warning('Failed to display notification {}: {}'.format(tag, stderr.strip()))
            return False
        logging.debug('Displayed notification {}: {}'.format(tag, title))
        return True


class LogNotifier(Notifier):
    """
    Writes notifications to the log. Used where no desktop notification system is available.
    """

    NAME = 'log'

    def notify(self, title: str, body: str, tag: str) -> bool:
        logging.info('Reminder [{}] {}: {}'.format(tag, title, body))
        return True


#: Notifiers by configuration name
NOTIFIERS = {
    AppleScriptNotifier.NAME: AppleScriptNotifier,
    LogNotifier.NAME: LogNotifier,
}


def get_notifier(name: str = 'auto') -> Notifier:
    """
    Get a notifier by name. ``auto`` selects Notification Centre on macOS and the log everywhere else.

    :param name: ``auto``, ``applescript`` or ``log``.

    :return: the notifier.
    """
    if name == 'auto':
        name = AppleScriptNotifier.NAME if sys.platform == 'darwin' else LogNotifier.NAME
    if name not in NOTIFIERS:
        raise ValueError('Unknown notifier: {}'.format(name))
    return NOTIFIERS[name]()
