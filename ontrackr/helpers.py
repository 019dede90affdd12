"""
This is a helper file used by the reminder, notification and CLI parts of OnTrackr.
"""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path
from subprocess import Popen, PIPE

from decouple import config

DATA_LOCATION: Path = Path(config('ONTRACKR_DATA_DIR', default=str(Path.home() / '.ontrackr')))  #: Location where
# application data is stored.
DRY_RUN: bool = False  #: If set to true, the user will have to confirm any change made by OnTrackr.


def confirm(prompt: str) -> bool:
    """
    If ``DRY_RUN`` is set to True, asks the user to confirm by displaying a prompt. Otherwise, will always return True.

    :param prompt: the confirmation prompt to display.
    :return: True if the action should be carried out.
    """
    if DRY_RUN:
        ans = input(prompt + ':: [Y]/N> ')
        return ans == 'y' or ans == 'Y' or ans == ''
    return True


def run_applescript(script: str, *args) -> tuple[int, str, str]:
    """
    Runs an AppleScript script.

    :param script: the script to run.
    :param args: a list of arguments to send to the script.

    :returns:

        - return_code (:py:class:`int`) - the script's return code.
        - stdout (:py:class:`str`) - standard output from the script.
        - stderr (:py:class:`str`) - standard error from the script.

    """
    arguments = list(args)
    p = Popen(['osascript', '-'] + arguments, stdin=PIPE, stdout=PIPE, stderr=PIPE, universal_newlines=True)
    stdout, stderr = p.communicate(script)
    return p.returncode, stdout, stderr


def settings_folder() -> Path:
    """
    Get the location of the application data folder for OnTrackr.

    :return: path to the application data folder.
    """
    folder = DATA_LOCATION
    folder.mkdir(parents=True, exist_ok=True)
    return folder


def log_folder() -> Path:
    """
    Get the location of the ``logs`` folder within OnTrackr's application data folder.

    :return: path to the ``logs`` folder.
    """
    folder = DATA_LOCATION / 'logs'
    folder.mkdir(parents=True, exist_ok=True)
    return folder


def utc_now() -> datetime:
    """
    The current time as a timezone-aware UTC datetime. This is the default clock used for due-checks.
    """
    return datetime.now(timezone.utc)


class DateUtil:
    """
    Utility class for converting between the date/time formats used by the OnTrackr API.
    """

    API_DATETIME = "%Y-%m-%dT%H:%M:%S.%f%z"
    API_DATETIME_ALT = "%Y-%m-%dT%H:%M:%S%z"  # Milliseconds are dropped by some serialisers
    DISPLAY_DATETIME = "%a %d %b %Y %H:%M"

    @staticmethod
    def convert(source_format: str,
                obj: str | datetime,
                required_format: str = '') -> str | datetime | bool:
        """
        Convert one date/datetime format to another.

        :param source_format: the format of the source date/datetime. Can be left empty if ``obj`` is a :py:class:`datetime`
        object.
        :param obj: what to convert from. Can either be a string, or a :py:class:`datetime` object.
        :param required_format: the format required if the required output is of type :py:class:`str`.

        """
        if isinstance(obj, str):
            try:
                return datetime.strptime(obj, source_format)
            except ValueError:
                if source_format == DateUtil.API_DATETIME:
                    try:
                        return datetime.strptime(obj, DateUtil.API_DATETIME_ALT)
                    except ValueError:
                        return False
                return False
        if required_format == '':
            return obj
        else:
            try:
                return obj.strftime(required_format)
            except ValueError:
                print('Could not convert date to specified format {}'.format(required_format), file=sys.stderr)
                return False

    @staticmethod
    def parse_api(value: str | None) -> datetime | None:
        """
        Parse a timestamp sent by the OnTrackr API (e.g. ``2024-04-18T08:00:00.000Z``). Naive timestamps are assumed to be
        UTC.

        :param value: the timestamp string.

        :return: a timezone-aware datetime, or None if ``value`` is empty, not a string or cannot be parsed.
        """
        if not value or not isinstance(value, str):
            return None
        parsed = DateUtil.convert(DateUtil.API_DATETIME, value.strip())
        if not parsed:
            try:
                parsed = datetime.fromisoformat(value.strip())
            except ValueError:
                return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    @staticmethod
    def to_api(value: datetime) -> str:
        """
        Format a datetime the way the OnTrackr API expects it: UTC, millisecond precision, ``Z`` suffix.

        :param value: the datetime to format. Naive datetimes are assumed to be UTC.

        :return: the formatted timestamp.
        """
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        return value.strftime("%Y-%m-%dT%H:%M:%S.") + '{:03d}Z'.format(value.microsecond // 1000)
