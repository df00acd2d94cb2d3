"""Row models for the `tweets`, `scheduling_queue` and `twitter_tokens` tables."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from dateutil.parser import isoparse


class TweetStatus(str, Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"
    FAILED = "failed"


def parse_timestamp(value) -> Optional[datetime]:
    """Supabase returns ISO 8601 strings; accept datetimes as-is."""
    if value is None or isinstance(value, datetime):
        return value
    return isoparse(value)


@dataclass
class Tweet:
    """A piece of content owned by one user."""

    id: str
    user_id: str
    content: str
    status: TweetStatus = TweetStatus.DRAFT
    hashtags: List[str] = field(default_factory=list)
    scheduled_for: Optional[datetime] = None
    posted_at: Optional[datetime] = None
    twitter_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "Tweet":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            content=row.get("content") or "",
            status=TweetStatus(row.get("status") or TweetStatus.DRAFT.value),
            hashtags=list(row.get("hashtags") or []),
            scheduled_for=parse_timestamp(row.get("scheduled_for")),
            posted_at=parse_timestamp(row.get("posted_at")),
            twitter_id=row.get("twitter_id"),
        )


@dataclass
class ScheduledDelivery:
    """A queue row: deliver `tweet_id` once `scheduled_for` has passed."""

    id: str
    user_id: str
    tweet_id: str
    scheduled_for: datetime
    processed: bool = False
    processed_at: Optional[datetime] = None
    error_message: Optional[str] = None
    claimed_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "ScheduledDelivery":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            tweet_id=str(row["tweet_id"]),
            scheduled_for=parse_timestamp(row["scheduled_for"]),
            processed=bool(row.get("processed", False)),
            processed_at=parse_timestamp(row.get("processed_at")),
            error_message=row.get("error_message"),
            claimed_at=parse_timestamp(row.get("claimed_at")),
        )


@dataclass(frozen=True)
class TwitterTokens:
    """Access token pair for one user. Read-only for the engine."""

    user_id: str
    access_token: str
    access_token_secret: str
    twitter_username: Optional[str] = None
    twitter_user_id: Optional[str] = None

    @property
    def is_connected(self) -> bool:
        return bool(self.access_token and self.access_token_secret)

    @classmethod
    def from_row(cls, row: dict) -> "TwitterTokens":
        return cls(
            user_id=str(row["user_id"]),
            access_token=row.get("access_token") or "",
            access_token_secret=row.get("access_token_secret") or "",
            twitter_username=row.get("twitter_username"),
            twitter_user_id=row.get("twitter_user_id"),
        )

    def to_row(self) -> dict:
        return {
            "user_id": self.user_id,
            "access_token": self.access_token,
            "access_token_secret": self.access_token_secret,
            "twitter_username": self.twitter_username,
            "twitter_user_id": self.twitter_user_id,
        }

    def __repr__(self):
        return f"TwitterTokens(user_id={self.user_id!r}, twitter_username={self.twitter_username!r})"
