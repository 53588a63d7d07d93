"""
Easy Waitlist admin commands.

Manage admin accounts and load waitlist search results into the database
the API serves from.

Usage:
    easy-waitlist create-admin clinic-admin --email admin@clinic.example --activate
    easy-waitlist set-password clinic-admin
    easy-waitlist activate clinic-admin
    easy-waitlist load-search clinic-admin candidates.json

The search file is a JSON list of ``{"phoneNumber": ..., "waitlistRecordKey": ...}``
objects, as produced by the zip code search.
"""
import argparse
import asyncio
import getpass
import json
import sys
from datetime import datetime
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from app.core.logging import setup_logging
from app.db.database import AsyncSessionLocal, init_db
from app.services.persistence.admins import AdminPersistenceService
from app.services.persistence.search_results import SearchResultPersistenceService
from app.services.waitlist.models import WaitlistCandidate

_candidates_adapter = TypeAdapter(List[WaitlistCandidate])


def _password(args: argparse.Namespace) -> str:
    if args.password:
        return args.password
    return getpass.getpass("Password: ")


async def cmd_create_admin(args: argparse.Namespace, session_factory) -> int:
    async with session_factory() as db:
        service = AdminPersistenceService(db)
        if await service.get_admin(args.uid) is not None:
            print(f"[ERROR] Admin already exists: {args.uid}", file=sys.stderr)
            return 1

        await service.create_admin(
            args.uid,
            email=args.email,
            could_see_admin=True,
            admin_activated=args.activate,
            password=_password(args),
        )
    print(f"[OK] Created admin {args.uid} (activated: {args.activate})")
    return 0


async def cmd_set_password(args: argparse.Namespace, session_factory) -> int:
    async with session_factory() as db:
        if not await AdminPersistenceService(db).set_password(args.uid, _password(args)):
            print(f"[ERROR] No such admin: {args.uid}", file=sys.stderr)
            return 1
    print(f"[OK] Password updated for {args.uid}")
    return 0


async def cmd_activate(args: argparse.Namespace, session_factory) -> int:
    activated = not args.revoke
    async with session_factory() as db:
        if not await AdminPersistenceService(db).set_claims(
            args.uid, could_see_admin=True, admin_activated=activated
        ):
            print(f"[ERROR] No such admin: {args.uid}", file=sys.stderr)
            return 1
    print(f"[OK] {args.uid} activated: {activated}")
    return 0


async def cmd_load_search(args: argparse.Namespace, session_factory) -> int:
    try:
        with open(args.path, encoding="utf-8") as f:
            candidates = _candidates_adapter.validate_python(json.load(f))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        print(f"[ERROR] Could not read candidates from {args.path}: {e}", file=sys.stderr)
        return 2

    async with session_factory() as db:
        result = await SearchResultPersistenceService(db).save_search_result(
            args.admin_uid, candidates, generated_at=args.generated_at
        )
    print(
        f"[OK] Stored {len(result.candidates)} candidates for {args.admin_uid} "
        f"(generated at {result.generated_at.isoformat()})"
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="easy-waitlist")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_create = sub.add_parser("create-admin", help="Create an admin account")
    p_create.add_argument("uid", help="Admin UID used to sign in")
    p_create.add_argument("--email", help="Contact email")
    p_create.add_argument("--password", help="Password (prompted when omitted)")
    p_create.add_argument("--activate", action="store_true", help="Allow the admin to start calling")
    p_create.set_defaults(func=cmd_create_admin)

    p_password = sub.add_parser("set-password", help="Replace an admin's password")
    p_password.add_argument("uid", help="Admin UID")
    p_password.add_argument("--password", help="Password (prompted when omitted)")
    p_password.set_defaults(func=cmd_set_password)

    p_activate = sub.add_parser("activate", help="Activate an admin account")
    p_activate.add_argument("uid", help="Admin UID")
    p_activate.add_argument("--revoke", action="store_true", help="Deactivate instead")
    p_activate.set_defaults(func=cmd_activate)

    p_search = sub.add_parser("load-search", help="Store a waitlist search result for an admin")
    p_search.add_argument("admin_uid", help="Admin UID the search belongs to")
    p_search.add_argument("path", help="JSON file with the candidate list")
    p_search.add_argument(
        "--generated-at",
        type=datetime.fromisoformat,
        help="UTC time the search ran (ISO 8601, defaults to now)",
    )
    p_search.set_defaults(func=cmd_load_search)

    return parser


async def _run(args: argparse.Namespace) -> int:
    await init_db()
    return await args.func(args, AsyncSessionLocal)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
