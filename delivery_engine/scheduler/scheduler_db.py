"""
Scheduler DB — Supabase reads/writes for tweets, the scheduling queue and tokens.

Tables:
    • tweets            — content rows, status written back after delivery
    • scheduling_queue  — one work item per scheduled tweet
    • twitter_tokens    — per-user OAuth 1.0a access token pair

Storage errors are not caught here; they propagate to the caller.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from supabase import create_client

from ..errors import MAX_ERROR_LENGTH
from ..models import ScheduledDelivery, Tweet, TweetStatus, TwitterTokens

logger = logging.getLogger(__name__)

TWEETS_TABLE = "tweets"
QUEUE_TABLE = "scheduling_queue"
TOKENS_TABLE = "twitter_tokens"


def _iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def _first(result):
    return result.data[0] if result.data else None


class SchedulerDB:
    """Thin wrapper around a Supabase client, one method per boundary operation."""

    def __init__(self, client):
        self.client = client

    @classmethod
    def from_config(cls, config) -> "SchedulerDB":
        """Build from SUPABASE_URL / SUPABASE_KEY in the engine config."""
        config.validate(require_storage=True)
        return cls(create_client(config.supabase_url, config.supabase_key))

    # ── Credentials ───────────────────────────────────────────────────────

    def get_credential(self, user_id) -> Optional[TwitterTokens]:
        result = (
            self.client.table(TOKENS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        row = _first(result)
        return TwitterTokens.from_row(row) if row else None

    def save_credential(self, tokens: TwitterTokens):
        """Insert or replace the token row for tokens.user_id."""
        self.client.table(TOKENS_TABLE).upsert(
            tokens.to_row(), on_conflict="user_id"
        ).execute()
        logger.info(f"🔑 Saved Twitter tokens for user {tokens.user_id} (@{tokens.twitter_username})")

    # ── Tweets ────────────────────────────────────────────────────────────

    def get_content(self, tweet_id) -> Optional[Tweet]:
        result = (
            self.client.table(TWEETS_TABLE)
            .select("*")
            .eq("id", tweet_id)
            .limit(1)
            .execute()
        )
        row = _first(result)
        return Tweet.from_row(row) if row else None

    def update_content_status(self, tweet_id, status: TweetStatus,
                              posted_at: datetime = None, platform_post_id: str = None):
        """
        Write the delivery outcome onto the tweet row.

        Repeating a `published` write with the same twitter_id is harmless.
        """
        status = TweetStatus(status)
        data = {"status": status.value}
        if status is TweetStatus.PUBLISHED:
            data["posted_at"] = _iso(posted_at or datetime.now(timezone.utc))
            data["twitter_id"] = platform_post_id
        elif status is TweetStatus.FAILED:
            data["twitter_id"] = None

        self.client.table(TWEETS_TABLE).update(data).eq("id", tweet_id).execute()

    # ── Scheduling Queue ──────────────────────────────────────────────────

    def list_due_unprocessed(self, now: datetime) -> List[ScheduledDelivery]:
        """All unprocessed work items with scheduled_for <= now, oldest first."""
        result = (
            self.client.table(QUEUE_TABLE)
            .select("*")
            .eq("processed", False)
            .lte("scheduled_for", _iso(now))
            .order("scheduled_for", desc=False)
            .execute()
        )
        return [ScheduledDelivery.from_row(row) for row in result.data or []]

    def list_pending_for_content(self, tweet_id) -> List[ScheduledDelivery]:
        result = (
            self.client.table(QUEUE_TABLE)
            .select("*")
            .eq("tweet_id", tweet_id)
            .eq("processed", False)
            .execute()
        )
        return [ScheduledDelivery.from_row(row) for row in result.data or []]

    def claim(self, item_id, claimed_at: datetime = None, stale_before: datetime = None) -> bool:
        """
        Conditionally stamp claimed_at on an unprocessed item.

        The update only matches when the row is unclaimed (or its claim is
        older than stale_before), so of two overlapping passes only one gets
        a row back and delivers the item.
        """
        query = (
            self.client.table(QUEUE_TABLE)
            .update({"claimed_at": _iso(claimed_at or datetime.now(timezone.utc))})
            .eq("id", item_id)
            .eq("processed", False)
        )
        if stale_before is None:
            query = query.is_("claimed_at", "null")
        else:
            query = query.or_(f"claimed_at.is.null,claimed_at.lt.{_iso(stale_before)}")
        return bool(query.execute().data)

    def mark_processed(self, item_id, processed_at: datetime = None, error_message: str = None):
        """Latch processed=true. Never reversed by the engine."""
        self.client.table(QUEUE_TABLE).update({
            "processed": True,
            "processed_at": _iso(processed_at or datetime.now(timezone.utc)),
            "error_message": str(error_message)[:MAX_ERROR_LENGTH] if error_message else None,
        }).eq("id", item_id).execute()
