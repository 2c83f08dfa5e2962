"""
One-shot expiry sweep for turnos.

The API process normally runs this daily through its scheduler. Use this
script on hosts where the in-process scheduler does not run (serverless
deploys, or CLEANUP_ENABLED=false) by calling it from an external cron.

Usage:
  python scripts/sweep_expired_turnos.py            # delete expired rows
  python scripts/sweep_expired_turnos.py --dry-run  # only count them
"""

from __future__ import annotations

import argparse
import logging
from datetime import datetime, timezone
from pathlib import Path
import sys


# Allow `import app.*` from backend/
REPO_ROOT = Path(__file__).resolve().parents[1]
BACKEND_DIR = REPO_ROOT / "backend"
sys.path.insert(0, str(BACKEND_DIR))


from app.core.database import SessionLocal  # noqa: E402
from app.tasks.cleanup import count_expired_turnos, sweep_expired_turnos  # noqa: E402


logger = logging.getLogger("sweep_expired_turnos")


def main() -> int:
    parser = argparse.ArgumentParser(description="Delete turnos whose expires_at has passed.")
    parser.add_argument("--dry-run", action="store_true", help="Only report how many rows would be deleted.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    now = datetime.now(timezone.utc)

    with SessionLocal() as db:
        if args.dry_run:
            n = count_expired_turnos(db, now=now)
            print(f"[dry-run] {n} expired turnos as of {now.isoformat()}")
            return 0
        deleted = sweep_expired_turnos(db, now=now)

    print(f"Done. Deleted {deleted} expired turnos as of {now.isoformat()}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
