"""Worklog diagnostics CLI."""

from __future__ import annotations

import argparse
import json

from worklog_mcp.config import WorklogSettings
from worklog_mcp.errors import StoreUnavailableError
from worklog_mcp.storage import SessionStore


def load_store(settings: WorklogSettings) -> SessionStore:
    try:
        return SessionStore(settings.data_file)
    except StoreUnavailableError as exc:
        print(f"Store unavailable: {exc}")
        raise SystemExit(1)


def cmd_users(args: argparse.Namespace) -> None:
    store = load_store(WorklogSettings())
    for user_id in store.users():
        print(f"{user_id}: {len(store.dates(user_id))} day(s)")


def cmd_show(args: argparse.Namespace) -> None:
    store = load_store(WorklogSettings())
    record = store.get(args.user, args.date)
    if record is None:
        print(f"No work data for {args.user} on {args.date}")
        raise SystemExit(1)
    if args.json:
        print(json.dumps(record.to_document(), indent=2))
        return

    document = record.to_document()
    print(f"{args.user} {args.date} [{document['state']}]")
    print(f"  start: {document['start'] or 'N/A'}")
    for index, item in enumerate(document["breaks"], start=1):
        print(f"  break {index}: {item['start']} - {item['end'] or 'ongoing'}")
    print(f"  end:   {document['end'] or 'N/A'}")


def cmd_summary(args: argparse.Namespace) -> None:
    store = load_store(WorklogSettings())
    records = store.records()
    summary = {
        "users_total": len(store.users()),
        "records_total": len(records),
        "state_counts": store.state_counts(),
        "dirty": store.dirty,
    }
    print(json.dumps(summary, indent=2))


def cmd_dangling(args: argparse.Namespace) -> None:
    store = load_store(WorklogSettings())
    payload = [
        {
            "user_id": user_id,
            "date": date_key,
            "break_number": len(record.breaks),
            "break_start": record.to_document()["breaks"][-1]["start"],
            "end": record.to_document()["end"],
        }
        for user_id, date_key, record in store.records()
        if record.end is not None and record.open_break is not None
    ]
    print(json.dumps(payload, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Worklog diagnostics")
    sub = parser.add_subparsers(dest="cmd")

    p_users = sub.add_parser("users", help="List users with stored work days")
    p_users.set_defaults(func=cmd_users)

    p_show = sub.add_parser("show", help="Show one user's record for a date")
    p_show.add_argument("--user", required=True)
    p_show.add_argument("--date", required=True, help="YYYY-MM-DD")
    p_show.add_argument("--json", action="store_true", help="Output JSON")
    p_show.set_defaults(func=cmd_show)

    p_summary = sub.add_parser("summary", help="Show record counts by state")
    p_summary.set_defaults(func=cmd_summary)

    p_dangling = sub.add_parser(
        "dangling",
        help="List ended sessions whose last break was never closed",
    )
    p_dangling.set_defaults(func=cmd_dangling)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
