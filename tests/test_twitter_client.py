"""Tests for the Twitter API client: request shape and outcome normalization."""

import json
import threading
from unittest.mock import MagicMock

import pytest
import requests

from delivery_engine.errors import SerializationError, UpstreamError
from delivery_engine.twitter.twitter_client import TwitterClient, format_tweet_text
from tests.conftest import make_response


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(engine_config, session):
    return TwitterClient.from_config(engine_config, session=session)


class TestFormatTweetText:
    def test_hashtags_appended_space_separated(self):
        assert format_tweet_text("hello", ["foo", "bar"]) == "hello #foo #bar"

    def test_no_hashtags_leaves_body_unchanged(self):
        assert format_tweet_text("hello", []) == "hello"
        assert format_tweet_text("hello", None) == "hello"

    def test_leading_hash_not_doubled_and_blank_tags_skipped(self):
        assert format_tweet_text("hello", ["#foo", " ", ""]) == "hello #foo"


class TestPostTweet:
    def test_success_returns_platform_id(self, client, session):
        session.request.return_value = make_response(
            201, {"data": {"id": "1445880548472328192", "text": "hello #foo"}}
        )

        tweet_id = client.post_tweet("hello #foo", "tok", "tok-secret")

        assert tweet_id == "1445880548472328192"
        method, url = session.request.call_args[0]
        kwargs = session.request.call_args[1]
        assert method == "POST"
        assert url == "https://api.x.com/2/tweets"
        assert json.loads(kwargs["data"]) == {"text": "hello #foo"}
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert kwargs["headers"]["Authorization"].startswith("OAuth ")
        assert 'oauth_token="tok"' in kwargs["headers"]["Authorization"]
        assert 'oauth_consumer_key="consumer-key"' in kwargs["headers"]["Authorization"]
        assert kwargs["timeout"] == 5

    def test_any_2xx_is_success(self, client, session):
        session.request.return_value = make_response(200, {"data": {"id": "7"}})
        assert client.post_tweet("hello", "tok", "tok-secret") == "7"

    def test_401_raises_upstream_error_with_status_and_body(self, client, session):
        body = {"title": "Unauthorized", "status": 401, "detail": "Unauthorized"}
        session.request.return_value = make_response(401, body)

        with pytest.raises(UpstreamError) as exc_info:
            client.post_tweet("hello", "tok", "tok-secret")

        assert exc_info.value.status_code == 401
        assert json.loads(exc_info.value.body) == body
        assert "401" in str(exc_info.value)

    def test_rate_limit_message(self, client, session):
        session.request.return_value = make_response(429, {"title": "Too Many Requests"})

        with pytest.raises(UpstreamError, match="Rate limit") as exc_info:
            client.post_tweet("hello", "tok", "tok-secret")
        assert exc_info.value.status_code == 429

    def test_unparseable_success_body_is_serialization_error(self, client, session):
        session.request.return_value = make_response(201, text="<html>oops</html>")

        with pytest.raises(SerializationError) as exc_info:
            client.post_tweet("hello", "tok", "tok-secret")
        assert isinstance(exc_info.value, UpstreamError)
        assert exc_info.value.body == "<html>oops</html>"

    @pytest.mark.parametrize("payload", [None, "x", [1]])
    def test_non_object_data_is_serialization_error(self, client, session, payload):
        session.request.return_value = make_response(201, {"data": payload})

        with pytest.raises(SerializationError) as exc_info:
            client.post_tweet("hello", "tok", "tok-secret")
        assert exc_info.value.status_code == 201

    def test_success_body_without_id_is_serialization_error(self, client, session):
        session.request.return_value = make_response(201, {"data": {}})

        with pytest.raises(SerializationError):
            client.post_tweet("hello", "tok", "tok-secret")

    def test_timeout_is_upstream_error(self, client, session):
        session.request.side_effect = requests.Timeout("read timed out")

        with pytest.raises(UpstreamError, match="timed out") as exc_info:
            client.post_tweet("hello", "tok", "tok-secret")
        assert exc_info.value.status_code is None

    def test_connection_error_is_upstream_error(self, client, session):
        session.request.side_effect = requests.ConnectionError("dns failure")

        with pytest.raises(UpstreamError):
            client.post_tweet("hello", "tok", "tok-secret")

    def test_empty_or_long_text_rejected_without_network(self, client, session):
        with pytest.raises(ValueError):
            client.post_tweet("   ", "tok", "tok-secret")
        with pytest.raises(ValueError, match="too long"):
            client.post_tweet("x" * 281, "tok", "tok-secret")
        session.request.assert_not_called()


class TestVerifyConnection:
    def test_returns_user_info(self, client, session):
        session.request.return_value = make_response(
            200, {"data": {"id": "2244994945", "username": "TwitterDev", "name": "Twitter Dev"}}
        )

        user = client.verify_connection("tok", "tok-secret")

        assert user == {"id": "2244994945", "username": "TwitterDev", "name": "Twitter Dev"}
        method, url = session.request.call_args[0]
        assert method == "GET"
        assert url == "https://api.x.com/2/users/me"
        assert "data" not in session.request.call_args[1]

    def test_rejected_tokens(self, client, session):
        session.request.return_value = make_response(401, {"title": "Unauthorized"})

        with pytest.raises(UpstreamError) as exc_info:
            client.verify_connection("tok", "bad-secret")
        assert exc_info.value.status_code == 401


class TestSessions:
    def test_injected_session_is_shared(self, engine_config, session):
        client = TwitterClient.from_config(engine_config, session=session)
        assert client.session is session

    def test_each_thread_gets_its_own_session(self, engine_config):
        client = TwitterClient.from_config(engine_config)
        sessions = []

        def grab():
            sessions.append(client.session)

        worker = threading.Thread(target=grab)
        worker.start()
        worker.join()

        assert isinstance(client.session, requests.Session)
        assert client.session is client.session
        assert sessions[0] is not client.session
