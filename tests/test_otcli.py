import argparse
import copy
import datetime
import json
import logging
from unittest import mock

import pytest

from ontrackr.cli.otcli import OnTrackrCli
from ontrackr.notifications.notifier import LogNotifier
from ontrackr.notifications.permission import NotificationPermission, PromptPermission
from ontrackr.reminders.controller import ReminderController
from ontrackr.reminders.model.reminder import Reminder
from ontrackr.reminders.model.remindersapi import RemindersApi

UTC = datetime.timezone.utc


class TestOnTrackrCli:
    CLI_BASE = 'ontrackr.cli.otcli'

    def setup_method(self):
        self.settings = copy.deepcopy(OnTrackrCli.SETTINGS)
        self.api = RemindersApi.API_URL, RemindersApi.API_TOKEN
        self.handlers = list(logging.getLogger().handlers)
        self.log_level = logging.getLogger().level
        self.controller = ReminderController.NOTIFIER, ReminderController.PERMISSION

    def teardown_method(self):
        OnTrackrCli.SETTINGS = self.settings
        RemindersApi.API_URL, RemindersApi.API_TOKEN = self.api
        ReminderController.NOTIFIER, ReminderController.PERMISSION = self.controller
        root = logging.getLogger()
        for handler in list(root.handlers):
            if handler not in self.handlers:
                root.removeHandler(handler)
                handler.close()
        root.setLevel(self.log_level)

    @staticmethod
    def __write_config(tmp_path, settings: dict):
        conf_file = tmp_path / 'conf.json'
        with open(conf_file, 'w') as fp:
            json.dump(settings, fp)
        return conf_file

    @staticmethod
    def __args(tmp_path, conf_file, **kwargs) -> argparse.Namespace:
        return argparse.Namespace(config=conf_file, log_dir=tmp_path, dry_run=False, **kwargs)

    def test_merge_settings(self, tmp_path):
        conf_file = TestOnTrackrCli.__write_config(tmp_path, {
            'api_url': 'https://ontrackr.example.com',
            'poll_interval': 15,
            'unknown_setting': 'ignored'
        })
        OnTrackrCli.merge_settings(conf_file)
        assert OnTrackrCli.SETTINGS['api_url'] == 'https://ontrackr.example.com'
        assert OnTrackrCli.SETTINGS['poll_interval'] == 15
        assert OnTrackrCli.SETTINGS['notifier'] == 'auto'
        assert 'unknown_setting' not in OnTrackrCli.SETTINGS

        # Missing file: defaults are kept
        OnTrackrCli.merge_settings(tmp_path / 'missing.json')
        assert OnTrackrCli.SETTINGS['poll_interval'] == 15

    def test_merge_settings_invalid(self, tmp_path):
        conf_file = tmp_path / 'conf.json'
        conf_file.write_text('{"api_url": ')
        with pytest.raises(SystemExit) as e:
            OnTrackrCli.merge_settings(conf_file)
        assert e.value.code == 20

    def test_override_config(self, tmp_path):
        cli = OnTrackrCli.__new__(OnTrackrCli)
        cli.args = argparse.Namespace(poll_interval=10, notifier='log', log_level='info')
        cli.override_config()
        assert OnTrackrCli.SETTINGS['poll_interval'] == 10
        assert OnTrackrCli.SETTINGS['notifier'] == 'log'
        assert OnTrackrCli.SETTINGS['refresh_interval'] == 0

    def test_parse_datetime(self):
        assert OnTrackrCli.parse_datetime('2024-04-18T08:45:00Z') == datetime.datetime(2024, 4, 18, 8, 45, tzinfo=UTC)
        local = OnTrackrCli.parse_datetime('2024-04-18T08:45')
        assert local.tzinfo is not None
        with pytest.raises(SystemExit) as e:
            OnTrackrCli.parse_datetime('next tuesday')
        assert e.value.code == 5

    def test_upcoming(self, tmp_path, capsys):
        conf_file = TestOnTrackrCli.__write_config(tmp_path, {'api_url': 'http://ontrackr.test'})
        remind_at = datetime.datetime.now(UTC) + datetime.timedelta(hours=2, minutes=5, seconds=30)
        reminders = [Reminder('r1', remind_at, message='Stand-up'), Reminder('r2', remind_at)]

        with mock.patch('{}.keyring.get_password'.format(TestOnTrackrCli.CLI_BASE), return_value='secret'), \
                mock.patch('{}.RemindersApi.get_upcoming'.format(TestOnTrackrCli.CLI_BASE),
                           return_value=(True, reminders)):
            OnTrackrCli(TestOnTrackrCli.__args(tmp_path, conf_file, command='upcoming', hide='r2'))

        assert RemindersApi.API_URL == 'http://ontrackr.test'
        assert RemindersApi.API_TOKEN == 'secret'
        out = capsys.readouterr().out
        assert '[r1] Reminder - Reminder (In 2h 5m): Stand-up' in out
        assert 'r2' not in out

    def test_upcoming_failure(self, tmp_path):
        conf_file = TestOnTrackrCli.__write_config(tmp_path, {})
        with mock.patch('{}.keyring.get_password'.format(TestOnTrackrCli.CLI_BASE), return_value=None), \
                mock.patch('{}.RemindersApi.get_upcoming'.format(TestOnTrackrCli.CLI_BASE),
                           return_value=(False, 'Connection refused')):
            with pytest.raises(SystemExit) as e:
                OnTrackrCli(TestOnTrackrCli.__args(tmp_path, conf_file, command='upcoming', hide=None))
        assert e.value.code == 6

    def test_invalid_settings(self, tmp_path):
        conf_file = TestOnTrackrCli.__write_config(tmp_path, {'notification_permission': 'sometimes'})
        with pytest.raises(SystemExit) as e:
            OnTrackrCli(TestOnTrackrCli.__args(tmp_path, conf_file, command='list'))
        assert e.value.code == 4

        conf_file = TestOnTrackrCli.__write_config(tmp_path, {'notification_permission': 'default', 'poll_interval': 0})
        with pytest.raises(SystemExit) as e:
            OnTrackrCli(TestOnTrackrCli.__args(tmp_path, conf_file, command='list'))
        assert e.value.code == 4

    def test_missing_config(self, tmp_path):
        with pytest.raises(SystemExit) as e:
            OnTrackrCli(TestOnTrackrCli.__args(tmp_path, tmp_path / 'missing.json', command='list'))
        assert e.value.code == 2

    def test_authenticate_api(self, tmp_path):
        cli = OnTrackrCli.__new__(OnTrackrCli)

        # Token saved in keyring
        cli.args = argparse.Namespace()
        with mock.patch('{}.keyring.get_password'.format(TestOnTrackrCli.CLI_BASE), return_value='secret'):
            assert cli.authenticate_api() is True
            assert RemindersApi.API_TOKEN == 'secret'

        # No token
        RemindersApi.API_TOKEN = None
        with mock.patch('{}.keyring.get_password'.format(TestOnTrackrCli.CLI_BASE), return_value=None):
            assert cli.authenticate_api() is False
            assert RemindersApi.API_TOKEN is None

        # Prompt for a new token
        cli.args = argparse.Namespace(api_token=True)
        with mock.patch('{}.getpass'.format(TestOnTrackrCli.CLI_BASE), return_value='new-secret'), \
                mock.patch('{}.keyring.set_password'.format(TestOnTrackrCli.CLI_BASE)) as mock_set:
            assert cli.authenticate_api() is True
            mock_set.assert_called_once_with("OnTrackr", "API-TOKEN", 'new-secret')
            assert RemindersApi.API_TOKEN == 'new-secret'

    def test_save_permission(self, tmp_path):
        conf_file = TestOnTrackrCli.__write_config(tmp_path, {'api_url': 'http://ontrackr.test'})
        cli = OnTrackrCli.__new__(OnTrackrCli)
        cli.conf_file = conf_file
        cli.save_permission(NotificationPermission.GRANTED)

        with open(conf_file) as fp:
            saved = json.load(fp)
        assert saved == {'api_url': 'http://ontrackr.test', 'notification_permission': 'granted'}
        assert OnTrackrCli.SETTINGS['notification_permission'] == 'granted'

        # A configuration file which does not exist yet is created
        cli.conf_file = tmp_path / 'new.json'
        cli.save_permission(NotificationPermission.DENIED)
        with open(tmp_path / 'new.json') as fp:
            assert json.load(fp) == {'notification_permission': 'denied'}

    def test_delete(self, tmp_path, capsys):
        conf_file = TestOnTrackrCli.__write_config(tmp_path, {})
        with mock.patch('{}.keyring.get_password'.format(TestOnTrackrCli.CLI_BASE), return_value='secret'), \
                mock.patch('{}.ReminderController.delete_reminder'.format(TestOnTrackrCli.CLI_BASE),
                           return_value=(True, 'Reminder deleted: r1')) as mock_delete:
            OnTrackrCli(TestOnTrackrCli.__args(tmp_path, conf_file, command='delete', id='r1'))
            mock_delete.assert_called_once_with('r1')
        assert 'Reminder deleted: r1' in capsys.readouterr().out

    def test_log_level(self, tmp_path):
        conf_file = TestOnTrackrCli.__write_config(tmp_path, {'log_level': 'debug'})
        with mock.patch('{}.keyring.get_password'.format(TestOnTrackrCli.CLI_BASE), return_value='secret'), \
                mock.patch('{}.RemindersApi.get_all'.format(TestOnTrackrCli.CLI_BASE), return_value=(True, [])):
            # Level from the configuration file
            OnTrackrCli(TestOnTrackrCli.__args(tmp_path, conf_file, command='list'))
            assert OnTrackrCli.SETTINGS['log_level'] == 'debug'
            assert logging.getLogger().level == logging.DEBUG

            # --log-level wins over the configuration file
            OnTrackrCli(TestOnTrackrCli.__args(tmp_path, conf_file, command='list', log_level='critical'))
            assert logging.getLogger().level == logging.CRITICAL

        conf_file = TestOnTrackrCli.__write_config(tmp_path, {'log_level': 'verbose'})
        with pytest.raises(SystemExit) as e:
            OnTrackrCli(TestOnTrackrCli.__args(tmp_path, conf_file, command='list'))
        assert e.value.code == 4

    def test_list_reminders(self, tmp_path, capsys):
        conf_file = TestOnTrackrCli.__write_config(tmp_path, {})
        remind_at = datetime.datetime(2024, 4, 18, 8, 45, tzinfo=UTC)
        reminders = [Reminder('r1', remind_at, message='Bring notes'), Reminder('r2', remind_at)]

        with mock.patch('{}.keyring.get_password'.format(TestOnTrackrCli.CLI_BASE), return_value='secret'), \
                mock.patch('{}.RemindersApi.get_all'.format(TestOnTrackrCli.CLI_BASE),
                           return_value=(True, reminders)):
            OnTrackrCli(TestOnTrackrCli.__args(tmp_path, conf_file, command='list'))

        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 2
        assert lines[0].startswith('[r1] ')
        assert lines[0].endswith('Reminder: Bring notes')
        assert lines[1].startswith('[r2] ')
        assert lines[1].endswith('Reminder')

        with mock.patch('{}.keyring.get_password'.format(TestOnTrackrCli.CLI_BASE), return_value='secret'), \
                mock.patch('{}.RemindersApi.get_all'.format(TestOnTrackrCli.CLI_BASE),
                           return_value=(False, 'Connection refused')):
            with pytest.raises(SystemExit) as e:
                OnTrackrCli(TestOnTrackrCli.__args(tmp_path, conf_file, command='list'))
        assert e.value.code == 6

    def test_add(self, tmp_path, capsys):
        conf_file = TestOnTrackrCli.__write_config(tmp_path, {})
        remind_at = datetime.datetime(2024, 4, 18, 8, 45, tzinfo=UTC)
        args = TestOnTrackrCli.__args(tmp_path, conf_file, command='add', at='2024-04-18T08:45:00Z', message='Stand-up',
                                      event_id='e1', task_id=None)

        with mock.patch('{}.keyring.get_password'.format(TestOnTrackrCli.CLI_BASE), return_value='secret'), \
                mock.patch('{}.ReminderController.create_reminder'.format(TestOnTrackrCli.CLI_BASE),
                           return_value=(True, Reminder('r9', remind_at))) as mock_create:
            OnTrackrCli(args)
            mock_create.assert_called_once_with(remind_at, message='Stand-up', event_id='e1', task_id=None)
        assert 'Created reminder r9' in capsys.readouterr().out

        with mock.patch('{}.keyring.get_password'.format(TestOnTrackrCli.CLI_BASE), return_value='secret'), \
                mock.patch('{}.ReminderController.create_reminder'.format(TestOnTrackrCli.CLI_BASE),
                           return_value=(False, 'Failed to create reminder: 400 Error')):
            with pytest.raises(SystemExit) as e:
                OnTrackrCli(args)
        assert e.value.code == 7

    def test_update(self, tmp_path, capsys):
        conf_file = TestOnTrackrCli.__write_config(tmp_path, {})
        updated = Reminder('r1', datetime.datetime(2024, 4, 18, 8, 45, tzinfo=UTC), message='Moved')

        with mock.patch('{}.keyring.get_password'.format(TestOnTrackrCli.CLI_BASE), return_value='secret'), \
                mock.patch('{}.ReminderController.update_reminder'.format(TestOnTrackrCli.CLI_BASE),
                           return_value=(True, updated)) as mock_update:
            # Only the message changes
            OnTrackrCli(TestOnTrackrCli.__args(tmp_path, conf_file, command='update', id='r1', at=None,
                                               message='Moved'))
            mock_update.assert_called_once_with('r1', remind_at=None, message='Moved')
        assert 'Updated reminder r1' in capsys.readouterr().out

        with mock.patch('{}.keyring.get_password'.format(TestOnTrackrCli.CLI_BASE), return_value='secret'), \
                mock.patch('{}.ReminderController.update_reminder'.format(TestOnTrackrCli.CLI_BASE),
                           return_value=(False, 'Failed to update reminder r1: 404 Error')):
            with pytest.raises(SystemExit) as e:
                OnTrackrCli(TestOnTrackrCli.__args(tmp_path, conf_file, command='update', id='r1',
                                                   at='2024-04-18T09:00:00Z', message=None))
        assert e.value.code == 8

    def test_watch(self, tmp_path):
        conf_file = TestOnTrackrCli.__write_config(tmp_path, {
            'poll_interval': 15,
            'notifier': 'log',
            'notification_permission': 'granted'
        })

        with mock.patch('{}.keyring.get_password'.format(TestOnTrackrCli.CLI_BASE), return_value='secret'), \
                mock.patch('{}.ReminderPoller'.format(TestOnTrackrCli.CLI_BASE)) as mock_poller, \
                mock.patch('{}.time.sleep'.format(TestOnTrackrCli.CLI_BASE), side_effect=KeyboardInterrupt):
            poller = mock_poller.return_value
            poller.running = True
            poller.__exit__.return_value = False

            # No command given
            OnTrackrCli(TestOnTrackrCli.__args(tmp_path, conf_file))

            mock_poller.assert_called_once_with(poll_interval=15, refresh_interval=0)
            poller.__enter__.assert_called_once()
            poller.__exit__.assert_called_once()

        assert isinstance(ReminderController.NOTIFIER, LogNotifier)
        assert isinstance(ReminderController.PERMISSION, PromptPermission)
        assert ReminderController.PERMISSION.is_granted() is True
