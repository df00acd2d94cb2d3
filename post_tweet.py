"""
Post Now — publish one tweet immediately, outside the schedule.

Usage:
    python post_tweet.py <tweet_id>
"""

import json
import sys

from delivery_engine import setup_logging
from delivery_engine.errors import ConfigurationError
from delivery_engine.scheduler import post_now_from_env


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("Usage: python post_tweet.py <tweet_id>")
        return 2

    setup_logging()
    try:
        result = post_now_from_env(argv[0])
    except ConfigurationError as e:
        print(f"❌ {e}")
        return 1

    print(json.dumps(result, indent=2))
    return 0 if result["success"] else 1


if __name__ == "__main__":
    sys.exit(main())
