"""
OAuth 1.0a Signer — builds the `Authorization` header for one Twitter API call.

Uses the app's consumer key/secret (shared by every account) plus the
per-user access token/secret stored in `twitter_tokens`.

Usage:
    from delivery_engine.twitter.oauth_signer import OAuthSigner
    signer = OAuthSigner.from_config(config)
    header = signer.authorization_header("POST", url, token, token_secret)
"""

from oauthlib.common import generate_nonce, generate_timestamp
from oauthlib.oauth1 import Client
from oauthlib.oauth1.rfc5849 import signature
from oauthlib.oauth1.rfc5849.utils import escape

from ..errors import ConfigurationError

SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"


# ─── Signing Primitives ───────────────────────────────────────────────────────

def percent_encode(value) -> str:
    """RFC 3986 encoding: everything but unreserved characters is escaped."""
    return escape(str(value))


def canonical_parameters(params: dict) -> str:
    """Encode every key/value, sort by key (then value), join as k=v&k=v."""
    return signature.normalize_parameters([(str(k), str(v)) for k, v in params.items()])


def signature_base_string(method: str, url: str, params: dict) -> str:
    """METHOD&encode(url)&encode(canonical parameter string)."""
    return signature.signature_base_string(
        method.upper(),
        signature.base_string_uri(url),
        canonical_parameters(params),
    )


def signing_key(consumer_secret: str, token_secret: str) -> str:
    return f"{percent_encode(consumer_secret)}&{percent_encode(token_secret)}"


def hmac_sha1_signature(base_string: str, consumer_secret: str, token_secret: str) -> str:
    """base64(HMAC-SHA1(signing key, base string))."""
    secrets = Client("", client_secret=consumer_secret, resource_owner_secret=token_secret)
    return signature.sign_hmac_sha1_with_client(base_string, secrets)


# ─── Signer ───────────────────────────────────────────────────────────────────

class OAuthSigner:
    """Signs requests on behalf of a user with the app's consumer credentials."""

    def __init__(self, consumer_key: str, consumer_secret: str):
        if not consumer_key:
            raise ConfigurationError("Missing TWITTER_CONSUMER_KEY environment variable")
        if not consumer_secret:
            raise ConfigurationError("Missing TWITTER_CONSUMER_SECRET environment variable")

        self.consumer_key = consumer_key
        self._consumer_secret = consumer_secret

    @classmethod
    def from_config(cls, config) -> "OAuthSigner":
        return cls(config.consumer_key, config.consumer_secret)

    def __repr__(self):
        return f"OAuthSigner(consumer_key={self.consumer_key!r})"

    def oauth_params(self, access_token: str, nonce=None, timestamp=None) -> dict:
        """
        The protocol parameters for one request.

        nonce/timestamp are generated per call unless given; pass them only to
        reproduce a signature.
        """
        return {
            "oauth_consumer_key": self.consumer_key,
            "oauth_nonce": generate_nonce() if nonce is None else str(nonce),
            "oauth_signature_method": SIGNATURE_METHOD,
            "oauth_timestamp": str(generate_timestamp() if timestamp is None else timestamp),
            "oauth_token": access_token,
            "oauth_version": OAUTH_VERSION,
        }

    def sign(self, method, url, access_token, token_secret,
             body_params=None, nonce=None, timestamp=None) -> dict:
        """
        Return the OAuth parameters with `oauth_signature` merged in.

        body_params are form-encoded body fields that must be part of the
        signature base. A JSON body is never included.
        """
        oauth = self.oauth_params(access_token, nonce=nonce, timestamp=timestamp)

        params = dict(body_params or {})
        params.update(oauth)

        base_string = signature_base_string(method, url, params)
        oauth["oauth_signature"] = hmac_sha1_signature(
            base_string, self._consumer_secret, token_secret
        )
        return oauth

    def authorization_header(self, method, url, access_token, token_secret,
                             body_params=None, nonce=None, timestamp=None) -> str:
        """Render `OAuth k="v", ...` with keys sorted and values percent-encoded."""
        oauth = self.sign(
            method, url, access_token, token_secret,
            body_params=body_params, nonce=nonce, timestamp=timestamp,
        )
        pairs = [
            f'{percent_encode(key)}="{percent_encode(value)}"'
            for key, value in sorted(oauth.items())
        ]
        return "OAuth " + ", ".join(pairs)
