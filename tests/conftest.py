"""Shared test fixtures and utilities."""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from delivery_engine.config import EngineConfig
from delivery_engine.models import ScheduledDelivery, Tweet, TweetStatus, TwitterTokens

NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeSchedulerDB:
    """In-memory stand-in for SchedulerDB that records every write in order."""

    def __init__(self):
        self.tweets = {}
        self.queue = {}
        self.tokens = {}
        self.writes = []

    # seeding helpers

    def add_tweet(self, tweet_id, user_id="user-1", content="hello", hashtags=None,
                  status=TweetStatus.SCHEDULED):
        self.tweets[tweet_id] = Tweet(
            id=tweet_id, user_id=user_id, content=content,
            hashtags=list(hashtags or []), status=status, scheduled_for=NOW,
        )
        return self.tweets[tweet_id]

    def add_tokens(self, user_id="user-1", token="tok", secret="tok-secret"):
        self.tokens[user_id] = TwitterTokens(
            user_id=user_id, access_token=token, access_token_secret=secret,
            twitter_username="someone", twitter_user_id="42",
        )
        return self.tokens[user_id]

    def add_item(self, item_id, tweet_id, user_id="user-1", scheduled_for=NOW):
        self.queue[item_id] = ScheduledDelivery(
            id=item_id, user_id=user_id, tweet_id=tweet_id, scheduled_for=scheduled_for,
        )
        return self.queue[item_id]

    # boundary operations

    def get_credential(self, user_id):
        return self.tokens.get(user_id)

    def save_credential(self, tokens):
        self.writes.append(("save_credential", tokens.user_id))
        self.tokens[tokens.user_id] = tokens

    def get_content(self, tweet_id):
        return self.tweets.get(tweet_id)

    def update_content_status(self, tweet_id, status, posted_at=None, platform_post_id=None):
        self.writes.append(("update_content_status", tweet_id, TweetStatus(status)))
        tweet = self.tweets.get(tweet_id)
        if tweet is None:
            return
        tweet.status = TweetStatus(status)
        if tweet.status is TweetStatus.PUBLISHED:
            tweet.posted_at = posted_at
            tweet.twitter_id = platform_post_id
        elif tweet.status is TweetStatus.FAILED:
            tweet.twitter_id = None

    def list_due_unprocessed(self, now):
        return sorted(
            (item for item in self.queue.values()
             if not item.processed and item.scheduled_for <= now),
            key=lambda item: item.scheduled_for,
        )

    def list_pending_for_content(self, tweet_id):
        return [item for item in self.queue.values()
                if item.tweet_id == tweet_id and not item.processed]

    def claim(self, item_id, claimed_at=None, stale_before=None):
        item = self.queue[item_id]
        if item.processed:
            return False
        if item.claimed_at is not None and (stale_before is None or item.claimed_at >= stale_before):
            return False
        item.claimed_at = claimed_at
        return True

    def mark_processed(self, item_id, processed_at=None, error_message=None):
        self.writes.append(("mark_processed", item_id))
        item = self.queue[item_id]
        item.processed = True
        item.processed_at = processed_at
        item.error_message = error_message


@pytest.fixture
def fake_db():
    return FakeSchedulerDB()


@pytest.fixture
def mock_twitter_client():
    """TwitterClient double; post_tweet returns a fixed platform id by default."""
    client = MagicMock()
    client.post_tweet.return_value = "1900000000000000001"
    return client


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def engine_config():
    return EngineConfig(
        consumer_key="consumer-key",
        consumer_secret="consumer-secret",
        supabase_url="https://example.supabase.co",
        supabase_key="service-role-key",
        api_base="https://api.x.com/2",
        request_timeout=5,
    )


def make_response(status_code, json_body=None, text=None):
    """Build a requests.Response-like mock."""
    resp = MagicMock()
    resp.status_code = status_code
    if json_body is not None:
        resp.text = json.dumps(json_body)
        resp.json.return_value = json_body
    else:
        resp.text = text or ""
        resp.json.side_effect = ValueError("No JSON object could be decoded")
    return resp
