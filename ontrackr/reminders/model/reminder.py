"""
Contains the ``Reminder`` class, which represents a reminder fetched from the OnTrackr API, and the ``ReminderEvent`` and
``ReminderTask`` classes which represent the calendar event or task a reminder is attached to.
"""

from __future__ import annotations

import datetime
import logging
from typing import List

from ontrackr.helpers import DateUtil

#: A reminder is due if it was scheduled within this window before the time of evaluation.
DUE_WINDOW: datetime.timedelta = datetime.timedelta(seconds=60)


class ReminderEvent:
    """
    Represents the calendar event a reminder is attached to.
    """

    def __init__(self, uuid: str | None, title: str, description: str | None = None,
                 date: datetime.datetime | None = None):
        self.uuid: str | None = uuid
        self.title: str = title
        self.description: str | None = description
        self.date: datetime.datetime | None = date

    @staticmethod
    def create_from_api(values: dict) -> ReminderEvent:
        return ReminderEvent(
            uuid=values.get('id'),
            title=values.get('title', ''),
            description=values.get('description'),
            date=DateUtil.parse_api(values.get('date'))
        )


class ReminderTask:
    """
    Represents the task a reminder is attached to.
    """

    def __init__(self, uuid: str | None, title: str, status: str = 'pending',
                 due_date: datetime.datetime | None = None):
        self.uuid: str | None = uuid
        self.title: str = title
        self.status: str = status
        self.due_date: datetime.datetime | None = due_date

    @property
    def done(self) -> bool:
        return self.status == 'done'

    @staticmethod
    def create_from_api(values: dict) -> ReminderTask:
        return ReminderTask(
            uuid=values.get('id'),
            title=values.get('title', ''),
            status=values.get('status', 'pending'),
            due_date=DateUtil.parse_api(values.get('dueDate'))
        )


class Reminder:
    """
    Represents a reminder. Reminders are created and deleted by the OnTrackr API; OnTrackr only ever reads snapshots of
    them to decide when a notification should be shown.
    """

    def __init__(self,
                 uuid: str,
                 remind_at: datetime.datetime,
                 message: str | None = None,
                 event_id: str | None = None,
                 task_id: str | None = None,
                 user_id: str | None = None,
                 event: ReminderEvent | None = None,
                 task: ReminderTask | None = None,
                 ):
        """
        Create a new reminder.

        :param uuid: the identifier of this reminder, as assigned by the API.
        :param remind_at: the timezone-aware datetime when the user should be alerted.
        :param message: the message to display, if any.
        :param event_id: the identifier of the event this reminder is attached to.
        :param task_id: the identifier of the task this reminder is attached to.
        :param user_id: the identifier of the user who owns this reminder.
        :param event: the event this reminder is attached to.
        :param task: the task this reminder is attached to.
        """
        self.uuid: str = uuid
        self.remind_at: datetime.datetime = remind_at
        self.message: str | None = message
        self.event_id: str | None = event_id
        self.task_id: str | None = task_id
        self.user_id: str | None = user_id
        self.event: ReminderEvent | None = event
        self.task: ReminderTask | None = task

    @staticmethod
    def create_from_api(values: dict) -> Reminder | None:
        """
        Creates a Reminder instance from a reminder object returned by the OnTrackr API, for example:

        .. code-block:: json

            {"id": "r1", "remindAt": "2024-04-18T08:00:00.000Z", "message": "Stand-up",
             "eventId": "e1", "userId": "u1", "Event": {"id": "e1", "title": "Daily stand-up"}}

        :param values: the decoded JSON object.

        :return: a Reminder instance, or None if ``values`` is not an object, or has no identifier or no valid
            ``remindAt``.
        """
        if not isinstance(values, dict):
            logging.warning('Skipping reminder which is not an object: {}'.format(values))
            return None
        remind_at = DateUtil.parse_api(values.get('remindAt'))
        if 'id' not in values or remind_at is None:
            logging.warning('Skipping reminder with missing id or invalid remindAt: {}'.format(values))
            return None

        return Reminder(
            uuid=str(values['id']),
            remind_at=remind_at,
            message=values.get('message') or None,
            event_id=values.get('eventId'),
            task_id=values.get('taskId'),
            user_id=values.get('userId'),
            event=ReminderEvent.create_from_api(values['Event']) if isinstance(values.get('Event'), dict) else None,
            task=ReminderTask.create_from_api(values['Task']) if isinstance(values.get('Task'), dict) else None
        )

    @staticmethod
    def create_list_from_api(values: List[dict]) -> List[Reminder]:
        """
        Creates a list of reminders from a list of API reminder objects, skipping any which cannot be parsed.

        :param values: the decoded JSON list.

        :return: the list of reminders.
        """
        reminders = []
        for value in values:
            reminder = Reminder.create_from_api(value)
            if reminder is not None:
                reminders.append(reminder)
        return reminders

    @property
    def related_title(self) -> str | None:
        """
        The title of the attached event or, failing that, the attached task.
        """
        if self.event is not None and self.event.title:
            return self.event.title
        if self.task is not None and self.task.title:
            return self.task.title
        return None

    @property
    def notification_title(self) -> str:
        return self.related_title or 'Reminder'

    @property
    def notification_body(self) -> str:
        return self.message or "Don't forget: {}".format(self.notification_title)

    def is_due(self, now: datetime.datetime) -> bool:
        """
        Checks whether this reminder should fire at ``now``. A reminder is due if it was scheduled no later than ``now``
        and less than ``DUE_WINDOW`` before it. Reminders whose window has passed are never due again.

        :param now: the time of evaluation.

        :return: True if this reminder is due.
        """
        return self.remind_at <= now and self.remind_at > now - DUE_WINDOW

    def to_api_payload(self) -> dict:
        """
        Returns a representation of this reminder suitable for creating or updating it through the API.

        :return: the JSON-serialisable payload.
        """
        payload = {'remindAt': DateUtil.to_api(self.remind_at)}
        if self.message is not None:
            payload['message'] = self.message
        if self.event_id is not None:
            payload['eventId'] = self.event_id
        if self.task_id is not None:
            payload['taskId'] = self.task_id
        return payload

    def __str__(self):
        return '{} ({})'.format(self.notification_title, self.uuid)

    def __repr__(self):
        return self.uuid
