"""
Contains the ``ReminderPoller`` class, which loads reminders once and then checks for due reminders on a schedule.
"""

from __future__ import annotations

import datetime
import logging
import threading

import schedule

from ontrackr.reminders.controller import ReminderController

#: Seconds between due-checks.
POLL_INTERVAL = 30


class ReminderPoller:
    """
    Runs the reminder controller on a schedule. Each poller owns its own ``schedule.Scheduler`` and a single thread which
    runs the due-check and refresh jobs, so they never overlap. The startup load runs on a thread of its own.
    Stop the poller (or leave its ``with`` block) to cancel all jobs.
    """

    def __init__(self, poll_interval: int = POLL_INTERVAL, refresh_interval: int = 0, tick: float = 1):
        """
        Initialises the poller.

        :param poll_interval: seconds between due-checks.
        :param refresh_interval: seconds between reloads of reminders from the API, or 0 to only load them at startup.
        :param tick: seconds between runs of the scheduler.
        """
        if poll_interval <= 0:
            raise ValueError('Poll interval must be positive, got {}'.format(poll_interval))
        if refresh_interval < 0:
            raise ValueError('Refresh interval cannot be negative, got {}'.format(refresh_interval))
        self.poll_interval: int = poll_interval
        self.refresh_interval: int = refresh_interval
        self.tick: float = tick
        self.scheduler: schedule.Scheduler = schedule.Scheduler()
        #: When set, the scheduler thread will be stopped
        self.cease_continuous_run: threading.Event = threading.Event()
        self.thread: threading.Thread | None = None
        self.startup_thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    @staticmethod
    def load() -> None:
        """
        Loads reminders and asks for notification permission. A failure is logged and leaves the poller running.
        """
        try:
            ReminderController.load_reminders()
            ReminderController.request_notification_permission()
        except Exception as e:
            logging.exception('Error loading reminders at startup: {}'.format(e))

    def startup(self) -> type[schedule.CancelJob]:
        """
        Starts :py:meth:`load` on its own thread, so due-checks are not held up by the API or the permission prompt.
        Scheduled once when the poller starts.
        """
        self.startup_thread = threading.Thread(target=ReminderPoller.load, name='ReminderPollerStartup', daemon=True)
        self.startup_thread.start()
        return schedule.CancelJob

    @staticmethod
    def check() -> None:
        """
        Checks for due reminders. A failure in one check is logged and does not stop the next one.
        """
        try:
            ReminderController.check_for_due_reminders()
        except Exception as e:
            logging.exception('Error checking for due reminders: {}'.format(e))

    @staticmethod
    def refresh() -> None:
        try:
            ReminderController.load_reminders()
        except Exception as e:
            logging.exception('Error refreshing reminders: {}'.format(e))

    def schedule_jobs(self) -> None:
        """
        Registers the startup, due-check and (if enabled) refresh jobs.
        """
        self.scheduler.clear()
        self.scheduler.every().second.do(self.startup).tag('startup')
        self.scheduler.every(self.poll_interval).seconds.do(ReminderPoller.check).tag('check')
        if self.refresh_interval > 0:
            self.scheduler.every(self.refresh_interval).seconds.do(ReminderPoller.refresh).tag('refresh')

    def run_continuously(self) -> None:
        """
        Keep jobs running until the poller is stopped.
        """
        while not self.cease_continuous_run.is_set():
            self.scheduler.run_pending()
            self.cease_continuous_run.wait(self.tick)

    def start(self) -> None:
        """
        Starts the poller. The startup job runs on the first scheduler tick and the first due-check one poll interval
        later.
        """
        if self.running:
            return
        self.cease_continuous_run.clear()
        self.schedule_jobs()
        # Run the startup job on the first tick rather than one second in
        for job in self.scheduler.get_jobs('startup'):
            job.next_run = datetime.datetime.now()
        self.thread = threading.Thread(target=self.run_continuously, name='ReminderPoller', daemon=True)
        self.thread.start()
        logging.info('Reminder poller started: checking every {} seconds.'.format(self.poll_interval))

    def stop(self) -> None:
        """
        Stops the poller and cancels all of its jobs. Safe to call more than once. A startup load which is still waiting
        on the API or the permission prompt is not waited for.
        """
        self.cease_continuous_run.set()
        if self.thread is not None and self.thread is not threading.current_thread():
            self.thread.join()
        self.scheduler.clear()
        self.thread = None
        logging.info('Reminder poller stopped.')

    def __enter__(self) -> ReminderPoller:
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
