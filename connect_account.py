"""
OAuth 1.0a — 3-legged Authorization for Twitter/X
==================================================
Connects a user's Twitter account: runs the PIN-based (out-of-band) flow with
the app's consumer key/secret, verifies the resulting tokens against
/users/me, and stores them in `twitter_tokens` for the delivery engine.

Usage:
    python connect_account.py <user_id>
"""

import sys
import webbrowser

from requests_oauthlib import OAuth1Session

from delivery_engine import setup_logging
from delivery_engine.config import EngineConfig
from delivery_engine.errors import ConfigurationError, UpstreamError
from delivery_engine.models import TwitterTokens
from delivery_engine.scheduler import SchedulerDB
from delivery_engine.twitter import TwitterClient

# Twitter OAuth 1.0a endpoints
REQUEST_TOKEN_URL = "https://api.twitter.com/oauth/request_token"
AUTHORIZATION_URL = "https://api.twitter.com/oauth/authorize"
ACCESS_TOKEN_URL = "https://api.twitter.com/oauth/access_token"


def fetch_access_token(config, prompt=input, open_browser=webbrowser.open):
    """
    Run the PIN flow. Returns (access_token, access_token_secret).

    Raises:
        ValueError: no PIN entered.
        requests_oauthlib/oauthlib errors from the token endpoints.
    """
    # Step 1: Get a request token
    print("\n🔄 Step 1: Fetching request token...")
    oauth = OAuth1Session(
        config.consumer_key,
        client_secret=config.consumer_secret,
        callback_uri="oob",  # PIN-based (out-of-band) flow
    )
    response = oauth.fetch_request_token(REQUEST_TOKEN_URL)
    resource_owner_key = response.get("oauth_token")
    resource_owner_secret = response.get("oauth_token_secret")

    # Step 2: Direct user to authorization URL
    authorization_url = oauth.authorization_url(AUTHORIZATION_URL)
    print(f"\n🌐 Step 2: Open this URL in your browser and authorize the app:\n")
    print(f"   {authorization_url}\n")
    try:
        open_browser(authorization_url)
    except Exception:
        print("   (Please copy and paste the URL into your browser)")

    # Step 3: Get the PIN from user
    print(f"\n📌 Step 3: After authorizing, Twitter will show you a PIN.")
    pin = prompt("   Enter the PIN here: ").strip()
    if not pin:
        raise ValueError("No PIN entered")

    # Step 4: Exchange for access token
    print("\n🔄 Step 4: Exchanging PIN for access token...")
    oauth = OAuth1Session(
        config.consumer_key,
        client_secret=config.consumer_secret,
        resource_owner_key=resource_owner_key,
        resource_owner_secret=resource_owner_secret,
        verifier=pin,
    )
    tokens = oauth.fetch_access_token(ACCESS_TOKEN_URL)
    return tokens["oauth_token"], tokens["oauth_token_secret"]


def store_verified_tokens(user_id, access_token, access_token_secret, db, client) -> TwitterTokens:
    """
    Verify the token pair with /users/me, then upsert the twitter_tokens row.

    Raises:
        UpstreamError: Twitter rejected the tokens; nothing is stored.
    """
    user = client.verify_connection(access_token, access_token_secret)
    tokens = TwitterTokens(
        user_id=str(user_id),
        access_token=access_token,
        access_token_secret=access_token_secret,
        twitter_username=user.get("username"),
        twitter_user_id=user.get("id"),
    )
    db.save_credential(tokens)
    return tokens


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("Usage: python connect_account.py <user_id>")
        return 2

    user_id = argv[0]
    setup_logging()

    print(f"\n{'='*60}")
    print(f"  OAuth 1.0a Authorization for user: {user_id}")
    print(f"{'='*60}")

    try:
        config = EngineConfig.from_env().validate(require_storage=True)
    except ConfigurationError as e:
        print(f"❌ {e}")
        return 1

    try:
        access_token, access_token_secret = fetch_access_token(config)
    except Exception as e:
        print(f"❌ Authorization failed: {e}")
        print("\n💡 Make sure your Twitter Developer App has:")
        print("   • OAuth 1.0a enabled")
        print("   • 'Read and Write' permissions")
        return 1

    # Step 5: Verify and save
    print("\n🔍 Step 5: Verifying credentials...")
    try:
        tokens = store_verified_tokens(
            user_id, access_token, access_token_secret,
            SchedulerDB.from_config(config), TwitterClient.from_config(config),
        )
    except UpstreamError as e:
        print(f"❌ Could not verify tokens: {e}")
        return 1

    print(f"\n{'='*60}")
    print(f"  ✅ Connected as @{tokens.twitter_username} (ID: {tokens.twitter_user_id})")
    print(f"{'='*60}\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
