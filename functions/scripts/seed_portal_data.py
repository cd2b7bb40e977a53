"""
Seeds (or resets) the portal store with demo users and mock course data.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portal.dependencies import get_document_store
from portal.portal_service import PortalService
from portal.seed import MockDataGenerator
from portal.users import UserService

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the course portal store")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Delete every collection before generating new mock data",
    )
    parser.add_argument(
        "--ensure-variety",
        action="store_true",
        help="Only add files when some status has too few of them",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for a reproducible dataset",
    )
    parser.add_argument(
        "--skip-users",
        action="store_true",
        help="Do not create the demo login accounts",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    store = get_document_store()
    service = PortalService(store, MockDataGenerator(seed=args.seed))
    logger.info("Using document store: %s", store.__class__.__name__)

    if args.ensure_variety:
        added = service.ensure_data_completeness()
        logger.info("Added %d files; status report: %s", added, service.file_status_report())
        return 0

    if args.reset:
        service.reset_all_data()
    else:
        service.initialize_data()

    if not args.skip_users:
        created = UserService(store).initialize_users()
        logger.info("Created %d demo users", created)

    logger.info("File status report: %s", service.file_status_report())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
