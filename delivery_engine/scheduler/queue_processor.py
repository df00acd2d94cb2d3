"""
Queue Processor — one pass over the due, unprocessed scheduling_queue rows.

Each work item is isolated: a failure is recorded on the item and its tweet,
and the pass moves on. Only a failing selection query (or missing config)
aborts the pass.

Per item:
    1. claim the row (skip it if another pass already has it)
    2. resolve the tweet + the owner's twitter_tokens
    3. post "<content> #tag1 #tag2"
    4. write tweet status, then latch processed=true (always last)
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Tuple

from ..errors import DeliveryError, NotFoundError, describe
from ..models import ScheduledDelivery, Tweet, TweetStatus, TwitterTokens
from ..twitter.twitter_client import format_tweet_text

logger = logging.getLogger(__name__)

SUCCEEDED = "succeeded"
FAILED = "failed"
SKIPPED = "skipped"

# A claim older than this is treated as abandoned (crashed pass) and retaken.
CLAIM_TTL = timedelta(minutes=10)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PassSummary:
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    started_at: datetime = field(default_factory=utc_now)

    def as_dict(self) -> dict:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "timestamp": self.started_at.isoformat(),
        }


# ─── Shared Delivery Steps ────────────────────────────────────────────────────

def resolve_tweet(db, tweet_id) -> Tweet:
    tweet = db.get_content(tweet_id)
    if tweet is None:
        raise NotFoundError(f"Tweet not found: {tweet_id}")
    return tweet


def resolve_tokens(db, user_id) -> TwitterTokens:
    tokens = db.get_credential(user_id)
    if tokens is None:
        raise NotFoundError(f"Twitter tokens not found for user {user_id}")
    return tokens


def deliver(client, tweet: Tweet, tokens: TwitterTokens) -> str:
    """Post the tweet with its hashtags. Returns the platform tweet id."""
    text = format_tweet_text(tweet.content, tweet.hashtags)
    return client.post_tweet(text, tokens.access_token, tokens.access_token_secret)


# ─── Processor ───────────────────────────────────────────────────────────────

class QueueProcessor:
    """Runs delivery passes against a SchedulerDB with a TwitterClient."""

    def __init__(self, db, client, clock=utc_now, max_workers=1, claim_ttl=CLAIM_TTL):
        self.db = db
        self.client = client
        self.clock = clock
        self.max_workers = max(1, int(max_workers))
        self.claim_ttl = claim_ttl

    def run_pass(self) -> PassSummary:
        """
        Select everything due as of one snapshot of "now" and process it.

        Raises:
            Whatever the selection query raises. Per-item errors never escape.
        """
        now = self.clock()
        summary = PassSummary(started_at=now)

        items = self.db.list_due_unprocessed(now)
        summary.total = len(items)
        if not items:
            logger.info("📭 No scheduled tweets due.")
            return summary

        logger.info(f"📬 Found {len(items)} tweet(s) to process")

        if self.max_workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                outcomes = list(pool.map(self.process_item, items))
        else:
            outcomes = [self.process_item(item) for item in items]

        summary.succeeded = outcomes.count(SUCCEEDED)
        summary.failed = outcomes.count(FAILED)
        summary.skipped = outcomes.count(SKIPPED)

        logger.info(
            f"🏁 Pass complete: {summary.succeeded} published, "
            f"{summary.failed} failed, {summary.skipped} skipped"
        )
        return summary

    def process_item(self, item: ScheduledDelivery) -> str:
        """Deliver one work item. Returns SUCCEEDED, FAILED or SKIPPED."""
        claimed_at = self.clock()
        try:
            claimed = self.db.claim(item.id, claimed_at, stale_before=claimed_at - self.claim_ttl)
        except Exception:
            logger.exception(f"❌ Could not claim queue item {item.id}; leaving it for the next pass")
            return FAILED
        if not claimed:
            logger.info(f"⏭️  Queue item {item.id} already claimed by another pass")
            return SKIPPED

        logger.info(f"Processing tweet {item.tweet_id} (queue item {item.id})")
        try:
            tweet, platform_post_id = self._deliver_item(item)
        except DeliveryError as e:
            logger.error(f"❌ Failed tweet {item.tweet_id} (queue item {item.id}): {e}")
            self._record(item, TweetStatus.FAILED, error_message=describe(e))
            return FAILED
        except Exception as e:
            logger.exception(f"❌ Unexpected error for tweet {item.tweet_id} (queue item {item.id})")
            self._record(item, TweetStatus.FAILED, error_message=describe(e))
            return FAILED

        if not self._record(item, TweetStatus.PUBLISHED, platform_post_id=platform_post_id):
            return FAILED
        logger.info(f"✅ Posted tweet {tweet.id} → {platform_post_id}")
        return SUCCEEDED

    def _deliver_item(self, item: ScheduledDelivery) -> Tuple[Tweet, str]:
        tweet = resolve_tweet(self.db, item.tweet_id)
        tokens = resolve_tokens(self.db, item.user_id)
        return tweet, deliver(self.client, tweet, tokens)

    def _record(self, item, status, platform_post_id=None, error_message=None) -> bool:
        """
        Tweet status first, processed flag last.

        If either write fails the item stays unprocessed and is retried once
        its claim expires.
        """
        try:
            self.db.update_content_status(
                item.tweet_id,
                status,
                posted_at=self.clock() if status is TweetStatus.PUBLISHED else None,
                platform_post_id=platform_post_id,
            )
            self.db.mark_processed(item.id, self.clock(), error_message=error_message)
        except Exception:
            logger.exception(f"⚠️  Could not record outcome for queue item {item.id}")
            return False
        return True


# ─── Entry Point ─────────────────────────────────────────────────────────────

def run_pass(config=None, max_workers=1) -> dict:
    """
    Build everything from the environment and run a single pass.

    Returns:
        dict: {"total", "succeeded", "failed", "skipped", "timestamp"}
    """
    from ..config import EngineConfig
    from ..twitter.twitter_client import TwitterClient
    from .scheduler_db import SchedulerDB

    config = (config or EngineConfig.from_env()).validate(require_storage=True)
    processor = QueueProcessor(
        SchedulerDB.from_config(config),
        TwitterClient.from_config(config),
        max_workers=max_workers,
    )
    return processor.run_pass().as_dict()
