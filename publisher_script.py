"""
Scheduled Tweet Publisher — standalone entry point for one queue pass.
Checks Supabase for due scheduled tweets and publishes them.

Works in ALL environments:
    • Local          — loads credentials from .env
    • GitHub Actions — loads from repo secrets (injected as env vars)
    • cron           — any scheduler that can run a Python script

Usage:
    python publisher_script.py
    python publisher_script.py --workers 4
"""

import argparse
import json
import sys
from datetime import datetime, timezone

from delivery_engine import setup_logging
from delivery_engine.config import EngineConfig
from delivery_engine.errors import ConfigurationError
from delivery_engine.scheduler import run_pass


def main(argv=None):
    parser = argparse.ArgumentParser(description="Publish due scheduled tweets")
    parser.add_argument("--workers", type=int, default=1,
                        help="process due items in parallel (default: 1)")
    args = parser.parse_args(argv)

    setup_logging()
    print(f"🚀 Scheduled Tweet Publisher")
    print(f"   Time: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')}")
    print()

    try:
        config = EngineConfig.from_env().validate(require_storage=True)
    except ConfigurationError as e:
        print(f"❌ {e}. Aborting.")
        return 1

    try:
        summary = run_pass(config, max_workers=args.workers)
    except Exception as e:
        print(f"❌ Pass failed: {e}")
        return 1

    print(json.dumps(summary, indent=2))
    return 0


# ─── Entry Point ─────────────────────────────────────────────────────────────

if __name__ == "__main__":
    sys.exit(main())
