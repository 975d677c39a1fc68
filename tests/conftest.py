from unittest.mock import MagicMock

import pytest
import requests


def make_response(status_code=200, text="", json_data=None, url="", headers=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    resp.url = url
    resp.headers = headers or {}
    resp.is_redirect = status_code in (301, 302, 303, 307, 308) and "Location" in resp.headers
    if json_data is None:
        resp.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        resp.json.return_value = json_data
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
    return resp


@pytest.fixture
def session():
    return MagicMock()


class SleepRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def sleeps():
    return SleepRecorder()
