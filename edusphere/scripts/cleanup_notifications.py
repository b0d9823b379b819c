"""
Remove notifications older than the retention window, for every user.

Usage:
  python -m edusphere.scripts.cleanup_notifications
  python -m edusphere.scripts.cleanup_notifications --days 90
"""

import argparse
import asyncio
from typing import Optional

from edusphere.api.v1.notifications.service import cleanup_old_notifications
from edusphere.core.config import settings
from edusphere.core.logging import setup_logging
from edusphere.db.session import AsyncSessionLocal


async def run_cleanup(days: Optional[int] = None) -> int:
    async with AsyncSessionLocal() as session:
        return await cleanup_old_notifications(session, days_to_keep=days)


def main() -> None:
    parser = argparse.ArgumentParser(description="Delete old notifications")
    parser.add_argument(
        "--days",
        type=int,
        default=None,
        help=f"Keep notifications newer than this many days (default {settings.notification_retention_days})",
    )
    args = parser.parse_args()
    setup_logging()
    removed = asyncio.run(run_cleanup(args.days))
    print(f"Removed {removed} notification(s)")


if __name__ == "__main__":
    main()
