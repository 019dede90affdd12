"""
Contains the ``UpcomingReminders`` class, which lists reminders that have not yet fired and lets the user dismiss them.
"""

from __future__ import annotations

import datetime
from typing import List, Set

from ontrackr import helpers
from ontrackr.reminders.model.reminder import Reminder


def format_reminder_time(remind_at: datetime.datetime, now: datetime.datetime) -> str:
    """
    Describe when a reminder fires relative to ``now``, e.g. ``In 2h 5m``.

    :param remind_at: when the reminder fires.
    :param now: the current time.

    :return: ``Overdue``, ``In {h}h {m}m``, ``In {m}m`` or ``Now``.
    """
    diff_seconds = (remind_at - now).total_seconds()
    if diff_seconds < 0:
        return 'Overdue'
    hours = int(diff_seconds // 3600)
    minutes = int((diff_seconds % 3600) // 60)
    if hours > 0:
        return 'In {}h {}m'.format(hours, minutes)
    elif minutes > 0:
        return 'In {}m'.format(minutes)
    return 'Now'


class UpcomingReminders:
    """
    A view of upcoming reminders. Dismissed reminders are hidden for the lifetime of this object only; nothing is sent to
    the API.
    """

    def __init__(self, reminders: List[Reminder], dismissed: Set[str] | None = None):
        self.reminders: List[Reminder] = reminders
        self.dismissed: Set[str] = set(dismissed) if dismissed else set()

    def dismiss(self, reminder_id: str) -> None:
        self.dismissed.add(reminder_id)

    def visible(self) -> List[Reminder]:
        return [reminder for reminder in self.reminders if reminder.uuid not in self.dismissed]

    def describe(self, now: datetime.datetime | None = None) -> List[str]:
        """
        Describe each visible reminder on a single line.

        :param now: the current time. Defaults to now.

        :return: one line per visible reminder.
        """
        if now is None:
            now = helpers.utc_now()
        lines = []
        for reminder in self.visible():
            kind = 'Event' if reminder.event is not None else 'Task' if reminder.task is not None else 'Reminder'
            line = '[{}] {} - {} ({})'.format(reminder.uuid, kind, reminder.notification_title,
                                             format_reminder_time(reminder.remind_at, now))
            if reminder.message:
                line += ': {}'.format(reminder.message)
            lines.append(line)
        return lines

    def __len__(self):
        return len(self.visible())
