#!/usr/bin/env python3
"""Load the sample organization into the configured graph store.

Run from the backend/ directory:

    python3 scripts/seed.py [--dry-run] [--verbose]

Employees that already exist (same employee ID) are left untouched, so the
script can be re-run safely. With the default in-memory backend the data
only lives for the duration of the run, which is still useful as a smoke test.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import Any

_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from hierarchigraph.core.config import Settings  # noqa: E402
from hierarchigraph.models.employee import EmployeeCreate  # noqa: E402
from hierarchigraph.persistence import create_store  # noqa: E402
from hierarchigraph.services.errors import DuplicateEmployeeId, HierarchyError, NotFound  # noqa: E402
from hierarchigraph.services.hierarchy_engine import HierarchyEngine  # noqa: E402

logger = logging.getLogger(__name__)

SAMPLE_EMPLOYEES: list[dict[str, Any]] = [
    {
        "employee_id": "EMP001",
        "first_name": "John",
        "last_name": "Smith",
        "email": "john.smith@company.com",
        "position": "CEO",
        "department": "Executive",
        "salary": 150000,
        "hire_date": "2020-01-15",
    },
    {
        "employee_id": "EMP002",
        "first_name": "Sarah",
        "last_name": "Johnson",
        "email": "sarah.johnson@company.com",
        "position": "CTO",
        "department": "Technology",
        "salary": 120000,
        "hire_date": "2020-02-01",
    },
    {
        "employee_id": "EMP003",
        "first_name": "Michael",
        "last_name": "Brown",
        "email": "michael.brown@company.com",
        "position": "CFO",
        "department": "Finance",
        "salary": 110000,
        "hire_date": "2020-03-01",
    },
    {
        "employee_id": "EMP004",
        "first_name": "Emily",
        "last_name": "Davis",
        "email": "emily.davis@company.com",
        "position": "Senior Developer",
        "department": "Technology",
        "salary": 85000,
        "hire_date": "2021-01-15",
    },
    {
        "employee_id": "EMP005",
        "first_name": "David",
        "last_name": "Wilson",
        "email": "david.wilson@company.com",
        "position": "Junior Developer",
        "department": "Technology",
        "salary": 65000,
        "hire_date": "2021-06-01",
    },
    {
        "employee_id": "EMP006",
        "first_name": "Lisa",
        "last_name": "Anderson",
        "email": "lisa.anderson@company.com",
        "position": "HR Manager",
        "department": "Human Resources",
        "salary": 75000,
        "hire_date": "2020-04-01",
    },
    {
        "employee_id": "EMP007",
        "first_name": "Robert",
        "last_name": "Taylor",
        "email": "robert.taylor@company.com",
        "position": "Marketing Manager",
        "department": "Marketing",
        "salary": 70000,
        "hire_date": "2020-05-01",
    },
]

# (subordinate employee ID, manager employee ID)
SAMPLE_REPORTING_LINES: list[tuple[str, str]] = [
    ("EMP002", "EMP001"),
    ("EMP004", "EMP002"),
    ("EMP005", "EMP004"),
]


def build_payloads(records: list[dict[str, Any]] | None = None) -> list[EmployeeCreate]:
    return [EmployeeCreate.model_validate(r) for r in (records or SAMPLE_EMPLOYEES)]


async def seed_engine(
    engine: HierarchyEngine,
    payloads: list[EmployeeCreate],
    reporting_lines: list[tuple[str, str]],
) -> dict[str, str]:
    """Create employees and reporting lines; return business ID -> store ID."""
    ids: dict[str, str] = {}

    for payload in payloads:
        try:
            created = await engine.create_employee(payload)
            ids[payload.employee_id] = created.id
            logger.info("Created %s %s (%s)", payload.first_name, payload.last_name, payload.employee_id)
        except DuplicateEmployeeId:
            existing = await engine.nodes.find_by_property("employee_id", payload.employee_id)
            ids[payload.employee_id] = existing.id
            logger.info("Skipping %s — already present", payload.employee_id)

    for subordinate, manager in reporting_lines:
        if subordinate not in ids or manager not in ids:
            raise NotFound(subordinate if subordinate not in ids else manager)
        await engine.set_manager(ids[subordinate], ids[manager])
        logger.info("%s now reports to %s", subordinate, manager)

    return ids


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Seed the sample organization into the configured graph store",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate the sample data and print the plan without writing",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    return parser.parse_args(argv)


async def seed(args: argparse.Namespace, settings: Settings | None = None) -> dict[str, str]:
    settings = settings or Settings()
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")

    payloads = build_payloads()
    logger.info("Validated %d sample employees", len(payloads))

    if args.dry_run:
        for payload in payloads:
            logger.info("[DRY RUN] would create %s %s", payload.employee_id, payload.email)
        for subordinate, manager in SAMPLE_REPORTING_LINES:
            logger.info("[DRY RUN] %s would report to %s", subordinate, manager)
        return {}

    store = await create_store(settings)
    engine = HierarchyEngine(store, max_hierarchy_nodes=settings.MAX_HIERARCHY_NODES)
    try:
        ids = await seed_engine(engine, payloads, SAMPLE_REPORTING_LINES)
        roots = await engine.get_hierarchy_forest()
    except HierarchyError:
        logger.exception("Seeding failed")
        raise
    finally:
        await engine.close()

    logger.info("=" * 50)
    logger.info("Seeding complete!")
    logger.info("Employees: %d", len(ids))
    logger.info("Hierarchy roots: %d", len(roots))
    return ids


def main() -> None:
    args = parse_args()
    asyncio.run(seed(args))


if __name__ == "__main__":
    main()
