"""
This is the model of the reminders part of OnTrackr. Here, you'll find the following:

- ``reminder.py`` - Contains the ``Reminder`` class which represents a reminder, and the ``ReminderEvent`` and
``ReminderTask`` classes for the event or task a reminder is attached to.
- ``remindersapi.py`` - Contains the ``RemindersApi`` class which fetches and manages reminders through the OnTrackr API.

"""

from . import reminder, remindersapi

__all__ = ['reminder', 'remindersapi', ]
