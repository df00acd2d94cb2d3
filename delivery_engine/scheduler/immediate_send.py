"""
Immediate Send — "post now" for one tweet, bypassing the due-item scan.

The caller's ownership of the tweet must already be checked by the request
layer. Errors come back as a structured PostResult, never swallowed.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..errors import DeliveryError, NotConnectedError, describe
from ..models import TweetStatus
from .queue_processor import deliver, resolve_tweet, utc_now

logger = logging.getLogger(__name__)


@dataclass
class PostResult:
    success: bool
    platform_post_id: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def failure(cls, error: Exception) -> "PostResult":
        return cls(success=False, error=str(error), error_type=type(error).__name__)

    def as_dict(self) -> dict:
        result = {"success": self.success}
        if self.success:
            result["platform_post_id"] = self.platform_post_id
        else:
            result["error"] = self.error
            result["error_type"] = self.error_type
        return result


def _close_pending_items(db, tweet_id, processed_at, error_message=None):
    """Latch any queued work item for this tweet so the queue cannot re-post it."""
    for item in db.list_pending_for_content(tweet_id):
        db.mark_processed(item.id, processed_at, error_message=error_message)
        logger.info(f"   Closed pending queue item {item.id} for tweet {tweet_id}")


def post_now(tweet_id, db, client, clock=utc_now) -> PostResult:
    """
    Deliver one tweet immediately.

    Not found / not connected: failure result, nothing is written.
    Delivery failure: tweet marked failed, failure result.
    """
    try:
        tweet = resolve_tweet(db, tweet_id)
        tokens = db.get_credential(tweet.user_id)
        if tokens is None or not tokens.is_connected:
            raise NotConnectedError(f"Twitter account not connected for user {tweet.user_id}")
    except DeliveryError as e:
        logger.error(f"❌ Cannot post tweet {tweet_id}: {e}")
        return PostResult.failure(e)

    try:
        platform_post_id = deliver(client, tweet, tokens)
    except (DeliveryError, ValueError) as e:
        logger.error(f"❌ Post tweet {tweet_id} failed: {e}")
        db.update_content_status(tweet.id, TweetStatus.FAILED)
        _close_pending_items(db, tweet.id, clock(), error_message=describe(e))
        return PostResult.failure(e)

    db.update_content_status(
        tweet.id, TweetStatus.PUBLISHED, posted_at=clock(), platform_post_id=platform_post_id
    )
    _close_pending_items(db, tweet.id, clock())
    logger.info(f"✅ Posted tweet {tweet.id} → {platform_post_id}")
    return PostResult(success=True, platform_post_id=platform_post_id)


def post_now_from_env(tweet_id, config=None) -> dict:
    """Entry point for the request layer: build from the environment and post."""
    from ..config import EngineConfig
    from ..twitter.twitter_client import TwitterClient
    from .scheduler_db import SchedulerDB

    config = (config or EngineConfig.from_env()).validate(require_storage=True)
    result = post_now(tweet_id, SchedulerDB.from_config(config), TwitterClient.from_config(config))
    return result.as_dict()
