"""
This is the reminders package of OnTrackr. Here, you'll find the following:

- ``model`` - the ``Reminder`` class and the OnTrackr API client.
- ``controller.py`` - the ``ReminderController`` which loads reminders, finds due reminders and shows notifications.
- ``poller.py`` - the ``ReminderPoller`` which runs the controller on a schedule.
- ``upcoming.py`` - the ``UpcomingReminders`` view of reminders which have not yet fired.

"""

from . import model
from . import controller
from . import poller
from . import upcoming

__all__ = ['model', 'controller', 'poller', 'upcoming', ]
