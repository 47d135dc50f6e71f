"""Tests for ProfileClient with a mocked requests.Session."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from bayernatlas_heightmapper.core.profile_client import ProfileClient
from bayernatlas_heightmapper.models.wire import GridRequest


@pytest.fixture
def session():
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    response = MagicMock()
    response.status_code = 200
    response.content = b'{"heights": []}'
    session.post.return_value = response
    return session


class TestProfileClient:
    def test_posts_linestring_json(self, session):
        client = ProfileClient("http://localhost/profile", timeout_s=3.0, session=session)
        body = client.post_request(GridRequest(coordinates=[(1, 2), (3, 4)]))

        assert body == b'{"heights": []}'
        args, kwargs = session.post.call_args
        assert args == ("http://localhost/profile",)
        assert kwargs["timeout"] == 3.0
        assert kwargs["headers"] == {"Content-Type": "application/json"}
        assert json.loads(kwargs["data"]) == {
            "type": "LineString",
            "coordinates": [[1, 2], [3, 4]],
        }

    def test_sets_user_agent(self, session):
        ProfileClient(session=session)
        assert session.headers["User-Agent"].startswith("bayernatlas-heightmapper/")

    def test_http_error_raises(self, session):
        session.post.return_value.raise_for_status.side_effect = requests.HTTPError("500")
        client = ProfileClient(session=session)
        with pytest.raises(requests.RequestException):
            client.post_request(GridRequest(coordinates=[(1, 2)]))

    def test_connection_error_propagates(self, session):
        session.post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(requests.ConnectionError):
            ProfileClient(session=session).post_request(GridRequest(coordinates=[(1, 2)]))

    def test_context_manager_closes(self, session):
        with ProfileClient(session=session):
            pass
        session.close.assert_called_once()
