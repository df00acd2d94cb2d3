"""
Twitter Module — OAuth 1.0a request signing and the API v2 client.
"""

from .oauth_signer import OAuthSigner
from .twitter_client import TwitterClient, format_tweet_text, MAX_TWEET_LENGTH
