"""
Twitter / X API v2 Client — signed calls on behalf of a stored account.

Supports:
    • POST /tweets     — create a text tweet, returns the platform tweet id
    • GET  /users/me   — verify that an access token pair still works

Every request is signed with OAuth 1.0a by `OAuthSigner`. No retries here —
retry policy belongs to the caller.

Usage:
    from delivery_engine.twitter.twitter_client import TwitterClient
    client = TwitterClient.from_config(config)
    tweet_id = client.post_tweet("Hello!", access_token, access_token_secret)
"""

import json
import logging
import threading

import requests

from ..config import DEFAULT_API_BASE, DEFAULT_TIMEOUT
from ..errors import SerializationError, UpstreamError
from .oauth_signer import OAuthSigner

logger = logging.getLogger(__name__)

MAX_TWEET_LENGTH = 280


# ─── Helper Functions ─────────────────────────────────────────────────────────

def format_tweet_text(content, hashtags=None) -> str:
    """
    Append hashtags to the tweet body.

    "hello", ["foo", "bar"] -> "hello #foo #bar"
    Empty or missing hashtags leave the body unchanged.
    """
    tags = [str(tag).strip().lstrip("#") for tag in (hashtags or [])]
    tags = [tag for tag in tags if tag]
    if not tags:
        return content
    return f"{content} " + " ".join(f"#{tag}" for tag in tags)


def _parse_json(resp):
    try:
        return resp.json()
    except ValueError as e:
        raise SerializationError(
            f"Malformed Twitter API response (HTTP {resp.status_code}): {resp.text[:200]}",
            status_code=resp.status_code,
            body=resp.text,
        ) from e


# ─── Client ──────────────────────────────────────────────────────────────────

class TwitterClient:
    """Lightweight Twitter API v2 client using OAuth 1.0a user context."""

    def __init__(self, signer: OAuthSigner, api_base=DEFAULT_API_BASE,
                 timeout=DEFAULT_TIMEOUT, session=None):
        self.signer = signer
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._shared_session = session
        self._local = threading.local()

    @property
    def session(self):
        """The injected session, or one requests.Session per thread."""
        if self._shared_session is not None:
            return self._shared_session
        if not hasattr(self._local, "session"):
            self._local.session = requests.Session()
        return self._local.session

    @classmethod
    def from_config(cls, config, session=None) -> "TwitterClient":
        return cls(
            OAuthSigner.from_config(config),
            api_base=config.api_base,
            timeout=config.request_timeout,
            session=session,
        )

    # ── HTTP Helpers ──────────────────────────────────────────────────────

    def _request(self, method, path, access_token, access_token_secret, payload=None):
        """
        Make a signed API request and return the response, whatever its status.

        Timeouts and connection failures surface as UpstreamError.
        """
        url = f"{self.api_base}{path}"
        headers = {
            # JSON bodies are not part of the OAuth 1.0a signature base
            "Authorization": self.signer.authorization_header(
                method, url, access_token, access_token_secret
            ),
        }
        kwargs = {"headers": headers, "timeout": self.timeout}
        if payload is not None:
            headers["Content-Type"] = "application/json"
            kwargs["data"] = json.dumps(payload)

        try:
            resp = self.session.request(method, url, **kwargs)
        except requests.Timeout as e:
            raise UpstreamError(
                f"Twitter API timed out after {self.timeout}s ({method} {path})"
            ) from e
        except requests.RequestException as e:
            raise UpstreamError(f"Twitter API request failed ({method} {path}): {e}") from e

        logger.debug(f"{method} {path} → HTTP {resp.status_code}")
        return resp

    @staticmethod
    def _raise_for_status(resp, action):
        if 200 <= resp.status_code < 300:
            return

        if resp.status_code == 429:
            message = f"Rate limit exceeded while trying to {action} (HTTP 429): {resp.text}"
        else:
            message = f"Failed to {action} (HTTP {resp.status_code}): {resp.text}"
        raise UpstreamError(message, status_code=resp.status_code, body=resp.text)

    # ── API Methods ───────────────────────────────────────────────────────

    def post_tweet(self, text: str, access_token: str, access_token_secret: str) -> str:
        """
        Post a tweet. Returns the platform-assigned tweet id.

        Raises:
            ValueError: text is empty or longer than 280 characters.
            UpstreamError: non-2xx status, malformed body, timeout.
        """
        if not text or not text.strip():
            raise ValueError("Tweet text cannot be empty")
        if len(text) > MAX_TWEET_LENGTH:
            raise ValueError(f"Tweet too long ({len(text)} chars, max {MAX_TWEET_LENGTH})")

        resp = self._request("POST", "/tweets", access_token, access_token_secret,
                             payload={"text": text})
        self._raise_for_status(resp, "post tweet")

        data = _parse_json(resp)
        payload = data.get("data") if isinstance(data, dict) else None
        tweet_id = payload.get("id") if isinstance(payload, dict) else None
        if not isinstance(tweet_id, str) or not tweet_id:
            raise SerializationError(
                f"Tweet response missing data.id (HTTP {resp.status_code}): {resp.text[:200]}",
                status_code=resp.status_code,
                body=resp.text,
            )
        return tweet_id

    def verify_connection(self, access_token: str, access_token_secret: str) -> dict:
        """
        Return authenticated user info.
        Returns dict with 'id', 'username', 'name'.
        """
        resp = self._request("GET", "/users/me", access_token, access_token_secret)
        self._raise_for_status(resp, "get user info")

        data = _parse_json(resp)
        user = data.get("data") if isinstance(data, dict) else None
        if not isinstance(user, dict) or "id" not in user:
            raise SerializationError(
                f"User response missing data.id (HTTP {resp.status_code}): {resp.text[:200]}",
                status_code=resp.status_code,
                body=resp.text,
            )
        return {
            "id": str(user["id"]),
            "username": user.get("username"),
            "name": user.get("name"),
        }
