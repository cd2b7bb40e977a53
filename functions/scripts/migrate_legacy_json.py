"""
Imports a JSON dump of the old browser storage into the portal store.

The dump is one JSON object. `app_*` keys (app_students, app_files, ...) hold
course data; `mock_students`, `mock_lecturers` and `mock_users` hold the old
per-role accounts, which are merged into unified users.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portal.dependencies import get_document_store
from portal.portal_service import PortalService
from portal.users import UserService

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Import a legacy browser storage dump")
    parser.add_argument("dump", type=Path, help="Path to the JSON dump")
    parser.add_argument(
        "--skip-users",
        action="store_true",
        help="Ignore mock_students / mock_lecturers / mock_users",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    with args.dump.open(encoding="utf-8") as f:
        dump = json.load(f)
    if not isinstance(dump, dict):
        logger.error("Expected a JSON object in %s", args.dump)
        return 1

    store = get_document_store()
    counts = PortalService(store).migrate_from_local_export(dump)
    logger.info("Imported course data: %s", counts)

    if not args.skip_users:
        users = UserService(store).migrate_from_legacy_data(dump)
        logger.info("Migrated %d users", len(users))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
