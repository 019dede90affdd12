"""
Contains the ``NotificationPermission`` classes, which decide whether OnTrackr may show notifications.
"""

from __future__ import annotations

import logging
from typing import Callable


class NotificationPermission:
    """
    A notification permission with a fixed state. ``request`` does not ask anybody, so a permission in the ``default``
    state stays there.
    """

    DEFAULT = 'default'
    GRANTED = 'granted'
    DENIED = 'denied'
    STATES = [DEFAULT, GRANTED, DENIED]

    def __init__(self, state: str = DEFAULT):
        """
        Create a new permission.

        :param state: one of ``default``, ``granted`` or ``denied``.
        """
        if state not in NotificationPermission.STATES:
            raise ValueError('Invalid notification permission: {}'.format(state))
        self.state: str = state

    def is_granted(self) -> bool:
        return self.state == NotificationPermission.GRANTED

    def request(self) -> str:
        """
        Ask for permission to show notifications.

        :return: the permission state after asking.
        """
        return self.state


class PromptPermission(NotificationPermission):
    """
    A notification permission which asks the user on the terminal. The decision is passed to ``on_change`` so that it can
    be remembered.
    """

    def __init__(self, state: str = NotificationPermission.DEFAULT, on_change: Callable[[str], None] | None = None):
        """
        Create a new permission.

        :param state: the previously saved state.
        :param on_change: called with the new state once the user has decided.
        """
        super().__init__(state)
        self.on_change: Callable[[str], None] | None = on_change

    def request(self) -> str:
        if self.state != NotificationPermission.DEFAULT:
            return self.state
        try:
            ans = input('Allow OnTrackr to show reminder notifications?:: [Y]/N> ')
        except EOFError:
            logging.warning('Cannot ask for notification permission without a terminal.')
            return self.state
        self.state = NotificationPermission.GRANTED if ans in ['y', 'Y', ''] else NotificationPermission.DENIED
        logging.info('Notification permission {}.'.format(self.state))
        if self.on_change is not None:
            self.on_change(self.state)
        return self.state
