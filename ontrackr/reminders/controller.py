"""
This is the reminder controller. It contains all methods required to load reminders, find due reminders and show their
notifications. These are called by the poller and the CLI, but can be called separately if imported.
"""
from __future__ import annotations

import datetime
import logging
from typing import Callable, List

from ontrackr import helpers
from ontrackr.notifications.notifier import Notifier
from ontrackr.notifications.permission import NotificationPermission
from ontrackr.reminders.model.reminder import Reminder
from ontrackr.reminders.model.remindersapi import RemindersApi


class ReminderController:
    """
    Contains various static methods for loading and checking reminders.
    """

    #: All reminders, as last loaded from the API
    REMINDERS: List[Reminder] = []
    #: Upcoming reminders, as last loaded from the API
    UPCOMING_REMINDERS: List[Reminder] = []
    #: Used to display notifications. Notifications are suppressed when this is None.
    NOTIFIER: Notifier | None = None
    #: Whether notifications may be shown
    PERMISSION: NotificationPermission = NotificationPermission()
    #: Returns the current time for due-checks
    CLOCK: Callable[[], datetime.datetime] = staticmethod(helpers.utc_now)

    @staticmethod
    def load_reminders() -> tuple[bool, str]:
        """
        Fetch all reminders and upcoming reminders from the API. The in-memory lists are only replaced if both fetches
        succeed; on failure the previous lists are kept.

        :returns:

            -success (:py:class:`bool`) - true if reminders are loaded successfully.

            -data (:py:class:`str`) - error message on failure, or success message.

        """
        success, data = RemindersApi.get_all()
        if not success:
            error = 'Error loading reminders: {}'.format(data)
            logging.error(error)
            return False, error
        all_reminders = data

        success, data = RemindersApi.get_upcoming()
        if not success:
            error = 'Error loading reminders: {}'.format(data)
            logging.error(error)
            return False, error

        ReminderController.REMINDERS = all_reminders
        ReminderController.UPCOMING_REMINDERS = data
        debug_msg = 'Loaded {} reminders ({} upcoming).'.format(len(all_reminders), len(data))
        logging.debug(debug_msg)
        return True, debug_msg

    @staticmethod
    def find_due_reminders(reminders: List[Reminder], now: datetime.datetime) -> List[Reminder]:
        """
        Find the reminders which are due at ``now``. See :py:meth:`Reminder.is_due`.

        :param reminders: the reminders to check.
        :param now: the time of evaluation.

        :return: the due reminders, in their original order.
        """
        return [reminder for reminder in reminders if reminder.is_due(now)]

    @staticmethod
    def check_for_due_reminders(now: datetime.datetime | None = None) -> List[Reminder]:
        """
        Show a notification for every loaded reminder which is due. Reminders are not remembered between checks, so a
        reminder which is still inside the due window on the next check is notified again.

        :param now: the time of evaluation. Defaults to the controller clock.

        :return: the due reminders.
        """
        if now is None:
            now = ReminderController.CLOCK()
        due_reminders = ReminderController.find_due_reminders(ReminderController.REMINDERS, now)
        if due_reminders:
            logging.debug('Due reminders: {}'.format(', '.join(str(r) for r in due_reminders)))
        for reminder in due_reminders:
            ReminderController.show_notification(reminder)
        return due_reminders

    @staticmethod
    def show_notification(reminder: Reminder) -> bool:
        """
        Show the notification for a reminder, if a notifier is configured and permission has been granted.

        :param reminder: the reminder to notify.

        :return: True if a notification was shown.
        """
        if ReminderController.NOTIFIER is None or not ReminderController.PERMISSION.is_granted():
            return False
        return ReminderController.NOTIFIER.notify(reminder.notification_title,
                                                  reminder.notification_body,
                                                  tag=reminder.uuid)

    @staticmethod
    def request_notification_permission() -> str:
        """
        Ask for notification permission if it has not been decided yet.

        :return: the permission state.
        """
        if ReminderController.PERMISSION.state == NotificationPermission.DEFAULT:
            return ReminderController.PERMISSION.request()
        return ReminderController.PERMISSION.state

    @staticmethod
    def create_reminder(remind_at: datetime.datetime,
                        message: str | None = None,
                        event_id: str | None = None,
                        task_id: str | None = None) -> tuple[bool, str] | tuple[bool, Reminder]:
        """
        Create a reminder through the API.

        :param remind_at: when the reminder should fire.
        :param message: the message to display.
        :param event_id: the event to attach the reminder to.
        :param task_id: the task to attach the reminder to.

        :returns:

            -success (:py:class:`bool`) - true if the reminder is created successfully.

            -data (:py:class:`str` | :py:class:`Reminder`) - error message on failure, or the created reminder.

        """
        reminder = Reminder('', remind_at, message=message, event_id=event_id, task_id=task_id)
        if not helpers.confirm('Create reminder at {}'.format(helpers.DateUtil.to_api(remind_at))):
            return False, 'Reminder creation cancelled.'
        success, data = RemindersApi.create(reminder)
        if not success:
            logging.error(data)
            return False, data
        logging.debug('Reminder created: {}'.format(data))
        return True, data

    @staticmethod
    def update_reminder(reminder_id: str,
                        remind_at: datetime.datetime | None = None,
                        message: str | None = None) -> tuple[bool, str] | tuple[bool, Reminder]:
        """
        Update a reminder through the API. Only the given fields are changed.

        :param reminder_id: the reminder to update.
        :param remind_at: the new time the reminder should fire.
        :param message: the new message.

        :returns:

            -success (:py:class:`bool`) - true if the reminder is updated successfully.

            -data (:py:class:`str` | :py:class:`Reminder`) - error message on failure, or the updated reminder.

        """
        changes = {}
        if remind_at is not None:
            changes['remindAt'] = helpers.DateUtil.to_api(remind_at)
        if message is not None:
            changes['message'] = message
        if not changes:
            return False, 'Nothing to update for reminder {}.'.format(reminder_id)
        if not helpers.confirm('Update reminder {}'.format(reminder_id)):
            return False, 'Reminder update cancelled.'
        success, data = RemindersApi.update(reminder_id, changes)
        if not success:
            logging.error(data)
            return False, data
        logging.debug('Reminder updated: {}'.format(data))
        return True, data

    @staticmethod
    def delete_reminder(reminder_id: str) -> tuple[bool, str]:
        """
        Delete a reminder through the API.

        :param reminder_id: the reminder to delete.

        :returns:

            -success (:py:class:`bool`) - true if the reminder is deleted successfully.

            -data (:py:class:`str`) - error message on failure, or success message.

        """
        if not helpers.confirm('Delete reminder {}'.format(reminder_id)):
            return False, 'Reminder deletion cancelled.'
        success, data = RemindersApi.delete(reminder_id)
        if not success:
            logging.error(data)
            return False, data
        logging.debug(data)
        return True, data
