from __future__ import annotations

import csv
import json
import logging
import os
import pathlib
import sys
import time
from datetime import datetime
from getpass import getpass
from pathlib import Path

import keyring

from ontrackr import helpers

import argparse

from ontrackr.helpers import DateUtil
from ontrackr.notifications.notifier import get_notifier
from ontrackr.notifications.permission import NotificationPermission, PromptPermission
from ontrackr.reminders.controller import ReminderController
from ontrackr.reminders.model.remindersapi import RemindersApi
from ontrackr.reminders.poller import ReminderPoller, POLL_INTERVAL
from ontrackr.reminders.upcoming import UpcomingReminders


class OnTrackrCli:
    """
    Defines the functionality of the OnTrackr CLI.
    """

    SETTINGS = {
        'api_url': RemindersApi.API_URL,
        'poll_interval': POLL_INTERVAL,
        'refresh_interval': 0,
        'notifier': 'auto',
        'notification_permission': NotificationPermission.DEFAULT,
        'log_level': 'info',
    }

    #: Logging levels by setting value
    LOG_LEVELS = {
        'debug': logging.DEBUG,
        'info': logging.INFO,
        'warning': logging.WARNING,
        'critical': logging.CRITICAL
    }

    def __init__(self, args):
        self.args = args
        self.logger = self.setup_logging()
        self.conf_file = self.apply_settings()
        self.logger.setLevel(OnTrackrCli.LOG_LEVELS[OnTrackrCli.SETTINGS['log_level']])
        self.authenticate_api()
        helpers.DRY_RUN = getattr(args, 'dry_run', False)
        commands = {
            'watch': self.watch,
            'list': self.list_reminders,
            'upcoming': self.upcoming,
            'add': self.add,
            'update': self.update,
            'delete': self.delete,
        }
        commands[getattr(args, 'command', None) or 'watch']()

    def watch(self) -> None:
        """
        Starts the reminder poller and blocks until interrupted.
        """
        ReminderController.NOTIFIER = get_notifier(OnTrackrCli.SETTINGS['notifier'])
        ReminderController.PERMISSION = PromptPermission(OnTrackrCli.SETTINGS['notification_permission'],
                                                         on_change=self.save_permission)
        poller = ReminderPoller(poll_interval=int(OnTrackrCli.SETTINGS['poll_interval']),
                                refresh_interval=int(OnTrackrCli.SETTINGS['refresh_interval']))
        with poller:
            logging.info('Watching for reminders. Press Ctrl-C to stop.')
            try:
                while poller.running:
                    time.sleep(1)
            except KeyboardInterrupt:
                logging.info('Interrupted.')

    @staticmethod
    def list_reminders() -> None:
        success, data = RemindersApi.get_all()
        if not success:
            logging.critical(data)
            sys.exit(6)
        for reminder in data:
            print('[{}] {} - {}{}'.format(reminder.uuid,
                                         DateUtil.convert('', reminder.remind_at.astimezone(), DateUtil.DISPLAY_DATETIME),
                                         reminder.notification_title,
                                         ': ' + reminder.message if reminder.message else ''))

    def upcoming(self) -> None:
        success, data = RemindersApi.get_upcoming()
        if not success:
            logging.critical(data)
            sys.exit(6)
        hidden = set()
        if getattr(self.args, 'hide', None):
            for row in csv.reader([self.args.hide]):
                hidden.update(uuid.strip() for uuid in row if uuid.strip())
        view = UpcomingReminders(data, hidden)
        if len(view) == 0:
            print('No upcoming reminders')
            return
        for line in view.describe():
            print(line)

    def add(self) -> None:
        remind_at = OnTrackrCli.parse_datetime(self.args.at)
        success, data = ReminderController.create_reminder(remind_at,
                                                           message=self.args.message,
                                                           event_id=self.args.event_id,
                                                           task_id=self.args.task_id)
        if not success:
            sys.exit(7)
        print('Created reminder {}'.format(data.uuid))

    def update(self) -> None:
        remind_at = OnTrackrCli.parse_datetime(self.args.at) if self.args.at else None
        success, data = ReminderController.update_reminder(self.args.id, remind_at=remind_at, message=self.args.message)
        if not success:
            logging.critical(data)
            sys.exit(8)
        print('Updated reminder {}'.format(data.uuid))

    def delete(self) -> None:
        success, data = ReminderController.delete_reminder(self.args.id)
        if not success:
            sys.exit(9)
        print(data)

    @staticmethod
    def parse_datetime(value: str) -> datetime:
        """
        Parse a date/time given on the command line. Times without a timezone are taken to be local time.

        :param value: an ISO-8601 date/time.

        :return: a timezone-aware datetime.
        """
        try:
            parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            logging.critical('Invalid date/time {}. Use ISO format, e.g. 2024-04-18T09:30.'.format(value))
            sys.exit(5)
        if parsed.tzinfo is None:
            parsed = parsed.astimezone()
        return parsed

    def authenticate_api(self) -> bool:
        """
        Loads the API token from the keyring. If the --api-token option is used, this method will ask for a token regardless
        of whether one is saved. A missing token is not an error; requests are then sent unauthenticated.

        :return: True if a token is available.
        """

        if 'api_token' in self.args:
            # User specifically wants to be asked for a token
            new_token = getpass('OnTrackr API Token> ')
            keyring.set_password("OnTrackr", "API-TOKEN", new_token)
            RemindersApi.API_TOKEN = new_token
            return True

        token = keyring.get_password("OnTrackr", "API-TOKEN")
        if token is None:
            logging.warning('No API token in keyring. Use --api-token to be prompted for a token.')
            return False
        RemindersApi.API_TOKEN = token
        return True

    def apply_settings(self) -> Path:
        """
        Load settings from the configuration file. This is normally in ~/.ontrackr/conf.json, but may be overridden with the
        --config option. Any configuration options specified via command-line options will override the values in the
        configuration file.

        :return: the configuration file in use.
        """

        if 'config' in self.args:
            if os.path.exists(self.args.config):
                conf_file = self.args.config
                self.logger.info('Using custom config file: {}'.format(conf_file))
            else:
                self.logger.critical('Configuration file {} not found.'.format(self.args.config))
                sys.exit(2)
        else:
            conf_file = helpers.settings_folder() / 'conf.json'
            self.logger.debug('Using default config file: {}'.format(conf_file))

        OnTrackrCli.merge_settings(conf_file)

        # Override settings from command line arguments
        self.override_config()

        if OnTrackrCli.SETTINGS['notification_permission'] not in NotificationPermission.STATES:
            logging.critical('Invalid notification_permission "{}". Use one of: {}'.format(
                OnTrackrCli.SETTINGS['notification_permission'], ', '.join(NotificationPermission.STATES)))
            sys.exit(4)
        try:
            if int(OnTrackrCli.SETTINGS['poll_interval']) <= 0 or int(OnTrackrCli.SETTINGS['refresh_interval']) < 0:
                raise ValueError
        except ValueError:
            logging.critical('poll_interval must be a positive number of seconds and refresh_interval zero or more.')
            sys.exit(4)
        if OnTrackrCli.SETTINGS['log_level'] not in OnTrackrCli.LOG_LEVELS:
            logging.critical('Invalid log_level "{}". Use one of: {}'.format(
                OnTrackrCli.SETTINGS['log_level'], ', '.join(OnTrackrCli.LOG_LEVELS)))
            sys.exit(4)

        RemindersApi.API_URL = OnTrackrCli.SETTINGS['api_url']
        logging.debug("Settings in use: {}".format(json.dumps(OnTrackrCli.SETTINGS, indent=2)))
        return Path(conf_file)

    @staticmethod
    def merge_settings(conf_file: str | Path) -> None:
        """
        Override any of the default settings of the OnTrackr CLI with settings found in a configuration file.
        """

        if os.path.exists(conf_file):
            with open(conf_file) as fp:
                try:
                    loaded_settings = json.loads(fp.read())
                    for key in OnTrackrCli.SETTINGS.keys():
                        if key in loaded_settings.keys():
                            OnTrackrCli.SETTINGS[key] = loaded_settings[key]
                except json.decoder.JSONDecodeError:
                    logging.critical("Your configuration file at {} is invalid. Please check syntax.".format(conf_file))
                    sys.exit(20)

    def override_config(self) -> None:
        """
        Override any settings (default or from configuration file) which have been specified as command-line options.
        """

        vargs = vars(self.args)
        for key in OnTrackrCli.SETTINGS.keys():
            if key in vargs and vargs[key] is not None:
                OnTrackrCli.SETTINGS[key] = vargs[key]

    def save_permission(self, state: str) -> None:
        """
        Remember the user's notification permission decision in the configuration file.

        :param state: the new permission state.
        """
        OnTrackrCli.SETTINGS['notification_permission'] = state
        saved = {}
        if os.path.exists(self.conf_file):
            with open(self.conf_file) as fp:
                try:
                    saved = json.load(fp)
                except json.decoder.JSONDecodeError:
                    logging.warning('Could not read {}; notification permission not saved.'.format(self.conf_file))
                    return
        saved['notification_permission'] = state
        with open(self.conf_file, 'w') as fp:
            json.dump(saved, fp, indent=2)

    def setup_logging(self) -> logging.Logger:
        """
        Sets up the logging system. The level given with --log-level applies until the configuration file is read; the
        ``log_level`` setting then takes over.

        :return: the logging helper for the CLI.
        """

        if 'log_dir' in self.args:
            if os.access(self.args.log_dir, os.W_OK | os.X_OK):
                log_folder = self.args.log_dir
            else:
                print("Specified log directory {} is not accessible.".format(self.args.log_dir))
                sys.exit(1)
        else:
            log_folder = helpers.log_folder()

        log_file = datetime.now().strftime("OnTrackr_%Y%m%d-%H%M%S") + '.log'
        log_level = OnTrackrCli.LOG_LEVELS[getattr(self.args, 'log_level', None) or 'info']

        logging.basicConfig(
            level=log_level,
            format='%(asctime)s %(levelname)s: %(message)s',
        )
        if log_file:
            logging.getLogger().addHandler(logging.FileHandler(log_folder / log_file))
        return logging.getLogger()


def main():
    """
    Defines arguments accepted by the CLI.
    """

    parser = argparse.ArgumentParser(
        prog="ontrackr",
        description="Desktop notifications and management for your OnTrackr reminders.",
    )

    # OnTrackr options
    parser.add_argument(
        "--api-url",
        type=str,
        default=argparse.SUPPRESS,
        help="set the base URL of the OnTrackr API.")
    parser.add_argument(
        "--api-token",
        default=argparse.SUPPRESS,
        action='store_true',
        help="prompt for the OnTrackr API token.")
    parser.add_argument(
        "--poll-interval",
        type=int,
        default=argparse.SUPPRESS,
        help="seconds between checks for due reminders.")
    parser.add_argument(
        "--refresh-interval",
        type=int,
        default=argparse.SUPPRESS,
        help="seconds between reloads of reminders from the API, or 0 to load them once.")
    parser.add_argument(
        "--notifier",
        type=str,
        choices=['auto', 'applescript', 'log'],
        default=argparse.SUPPRESS,
        help="how notifications are displayed.")
    parser.add_argument(
        "--notification-permission",
        type=str,
        choices=NotificationPermission.STATES,
        default=argparse.SUPPRESS,
        help="grant or deny notifications, or set to default to be asked.")
    parser.add_argument(
        "--dry-run",
        default=False,
        action='store_true',
        help="confirm every change before it is sent to the API.")

    # Cli-specific options
    parser.add_argument(
        "--config",
        type=pathlib.Path,
        default=argparse.SUPPRESS,
        help="use to provide a path to a custom configuration file.")
    parser.add_argument(
        "--log-dir",
        type=pathlib.Path,
        default=argparse.SUPPRESS,
        help="specify a custom directory to use for logging.")
    parser.add_argument(
        "--log-level",
        type=str,
        choices=['debug', 'info', 'critical', 'warning'],
        default=argparse.SUPPRESS,
        help="specify the logging level.")

    subparsers = parser.add_subparsers(dest='command')
    subparsers.add_parser('watch', help="show notifications for due reminders until interrupted (default).")
    subparsers.add_parser('list', help="list all reminders.")
    upcoming_parser = subparsers.add_parser('upcoming', help="list upcoming reminders.")
    upcoming_parser.add_argument(
        "--hide",
        type=str,
        help="comma-separated reminder IDs to leave out.")
    add_parser = subparsers.add_parser('add', help="create a reminder.")
    add_parser.add_argument("--at", type=str, required=True, help="when the reminder fires (ISO format).")
    add_parser.add_argument("--message", type=str, help="the reminder message.")
    add_parser.add_argument("--event-id", type=str, help="the event to attach the reminder to.")
    add_parser.add_argument("--task-id", type=str, help="the task to attach the reminder to.")
    update_parser = subparsers.add_parser('update', help="update a reminder.")
    update_parser.add_argument("id", type=str, help="the reminder to update.")
    update_parser.add_argument("--at", type=str, help="when the reminder fires (ISO format).")
    update_parser.add_argument("--message", type=str, help="the reminder message.")
    delete_parser = subparsers.add_parser('delete', help="delete a reminder.")
    delete_parser.add_argument("id", type=str, help="the reminder to delete.")

    OnTrackrCli(parser.parse_args())


if __name__ == "__main__":
    main()
