"""
Contains the ``RemindersApi`` class, which talks to the reminders endpoints of the OnTrackr API.
"""

from __future__ import annotations

from typing import List

import requests
from decouple import config

from ontrackr.reminders.model.reminder import Reminder


class RemindersApi:
    """
    Contains static methods for each of the reminder endpoints of the OnTrackr API. Every method returns a
    ``(success, data)`` tuple; network and HTTP errors never propagate.
    """

    #: Base URL of the OnTrackr API
    API_URL: str = config('ONTRACKR_API_URL', default='http://localhost:5000')
    #: Bearer token sent with every request (this is stored in the system keyring)
    API_TOKEN: str | None = None
    #: Seconds to wait for the API before giving up
    TIMEOUT: float = 10.0

    @staticmethod
    def _url(path: str) -> str:
        return RemindersApi.API_URL.rstrip('/') + path

    @staticmethod
    def _headers() -> dict:
        headers = {'Content-Type': 'application/json'}
        if RemindersApi.API_TOKEN:
            headers['Authorization'] = 'Bearer {}'.format(RemindersApi.API_TOKEN)
        return headers

    @staticmethod
    def _fetch_list(path: str, params: dict | None, error: str) -> tuple[bool, str] | tuple[bool, List[Reminder]]:
        try:
            response = requests.get(RemindersApi._url(path), params=params, headers=RemindersApi._headers(),
                                    timeout=RemindersApi.TIMEOUT)
            response.raise_for_status()
            values = response.json()
        except (requests.RequestException, ValueError) as e:
            return False, '{}: {}'.format(error, e)
        if not isinstance(values, list):
            return False, '{}: expected a list, got {}'.format(error, type(values).__name__)
        return True, Reminder.create_list_from_api(values)

    @staticmethod
    def get_all(upcoming: bool = False) -> tuple[bool, str] | tuple[bool, List[Reminder]]:
        """
        Fetch all reminders of the current user.

        :param upcoming: if True, ask the API to only return reminders which have not yet fired.

        :returns:

            -success (:py:class:`bool`) - true if reminders are fetched successfully.

            -data (:py:class:`str` | :py:class:`List[Reminder]`) - error message on failure, or list of reminders.

        """
        params = {'upcoming': 'true'} if upcoming else None
        return RemindersApi._fetch_list('/api/reminders', params, 'Failed to fetch reminders')

    @staticmethod
    def get_upcoming() -> tuple[bool, str] | tuple[bool, List[Reminder]]:
        """
        Fetch the upcoming reminders of the current user.

        :returns:

            -success (:py:class:`bool`) - true if reminders are fetched successfully.

            -data (:py:class:`str` | :py:class:`List[Reminder]`) - error message on failure, or list of reminders.

        """
        return RemindersApi._fetch_list('/api/reminders/upcoming', None, 'Failed to fetch upcoming reminders')

    @staticmethod
    def create(reminder: Reminder) -> tuple[bool, str] | tuple[bool, Reminder]:
        """
        Create a reminder. The identifier of ``reminder`` is ignored; the API assigns one.

        :param reminder: the reminder to create.

        :returns:

            -success (:py:class:`bool`) - true if the reminder is created successfully.

            -data (:py:class:`str` | :py:class:`Reminder`) - error message on failure, or the created reminder.

        """
        try:
            response = requests.post(RemindersApi._url('/api/reminders'), json=reminder.to_api_payload(),
                                     headers=RemindersApi._headers(), timeout=RemindersApi.TIMEOUT)
            response.raise_for_status()
            created = Reminder.create_from_api(response.json())
        except (requests.RequestException, ValueError) as e:
            return False, 'Failed to create reminder: {}'.format(e)
        if created is None:
            return False, 'Failed to create reminder: invalid response from API.'
        return True, created

    @staticmethod
    def update(reminder_id: str, changes: dict) -> tuple[bool, str] | tuple[bool, Reminder]:
        """
        Update a reminder.

        :param reminder_id: the identifier of the reminder to update.
        :param changes: the API fields to change, e.g. ``{'message': 'New text'}``.

        :returns:

            -success (:py:class:`bool`) - true if the reminder is updated successfully.

            -data (:py:class:`str` | :py:class:`Reminder`) - error message on failure, or the updated reminder.

        """
        try:
            response = requests.put(RemindersApi._url('/api/reminders/{}'.format(reminder_id)), json=changes,
                                    headers=RemindersApi._headers(), timeout=RemindersApi.TIMEOUT)
            response.raise_for_status()
            updated = Reminder.create_from_api(response.json())
        except (requests.RequestException, ValueError) as e:
            return False, 'Failed to update reminder {}: {}'.format(reminder_id, e)
        if updated is None:
            return False, 'Failed to update reminder {}: invalid response from API.'.format(reminder_id)
        return True, updated

    @staticmethod
    def delete(reminder_id: str) -> tuple[bool, str]:
        """
        Delete a reminder.

        :param reminder_id: the identifier of the reminder to delete.

        :returns:

            -success (:py:class:`bool`) - true if the reminder is deleted successfully.

            -data (:py:class:`str`) - error message on failure, or success message.

        """
        try:
            response = requests.delete(RemindersApi._url('/api/reminders/{}'.format(reminder_id)),
                                       headers=RemindersApi._headers(), timeout=RemindersApi.TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as e:
            return False, 'Failed to delete reminder {}: {}'.format(reminder_id, e)
        return True, 'Reminder deleted: {}'.format(reminder_id)
