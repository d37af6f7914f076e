#!/usr/bin/env python3
"""
Run one report sync outside the web process (host crontab, scheduled job runner).

Usage:
  python scripts/sync_report.py
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def main() -> int:
    parser = argparse.ArgumentParser(description="Sync the Zoho member report into blob storage.")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from app.portal import create_app
    from app.portal.modules.report_sync.service import sync_report
    from app.portal.modules.report_sync.zoho_client import ReportRateLimited

    app = create_app()
    try:
        result = sync_report(app, trigger="cli")
    except ReportRateLimited as e:
        print(f"Rate limited by Zoho; retry in {e.wait_seconds}s", flush=True)
        return 2
    except Exception as e:
        print(f"Sync failed: {e}", flush=True)
        return 1
    print(f"Synced {result.row_count} rows to {result.blob_key}", flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
