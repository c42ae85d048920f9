"""Run the status sweep once, outside the scheduler.

Usage:
    python -m dispatchsync.tools.run_sweep
    python -m dispatchsync.tools.run_sweep --purge-orphans
    python -m dispatchsync.tools.run_sweep --dispatch <key>   # one dispatch only
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from dispatchsync.infrastructure.api.dependencies import reconcile_in_own_session
from dispatchsync.infrastructure.scheduler.jobs import orphan_purge_job, status_sweep_job

logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")
logger = logging.getLogger(__name__)


async def run(dispatch_key: str | None, purge_orphans: bool) -> int:
    if dispatch_key:
        result = await reconcile_in_own_session(dispatch_key)
        print(f"{dispatch_key}: {result.previous_status.value} -> {result.status.value}"
              f" ({'changed' if result.changed else 'unchanged'})")
        failed = 0
    else:
        report = await status_sweep_job()
        print(f"\n{'='*50}")
        print("STATUS SWEEP")
        print(f"{'='*50}")
        print(f"Scanned:    {report.scanned}")
        print(f"Reconciled: {report.reconciled}")
        print(f"Skipped:    {report.skipped}")
        print(f"Changed:    {len(report.changed)} {report.changed or ''}")
        print(f"Failed:     {len(report.failed)} {report.failed or ''}")
        failed = len(report.failed)

    if purge_orphans:
        purged = await orphan_purge_job()
        print(f"Orphaned schedule records purged: {purged}")

    return 1 if failed else 0


def main():
    parser = argparse.ArgumentParser(description="Reconcile dispatch statuses once")
    parser.add_argument(
        "--dispatch", type=str, default=None,
        help="Reconcile a single dispatch by storage key",
    )
    parser.add_argument(
        "--purge-orphans", action="store_true",
        help="Also delete schedule records whose dispatch no longer exists",
    )
    args = parser.parse_args()

    sys.exit(asyncio.run(run(args.dispatch, args.purge_orphans)))


if __name__ == "__main__":
    main()
