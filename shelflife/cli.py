"""CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from datetime import date, timedelta
from pathlib import Path

from dotenv import load_dotenv

from .backup import export_items, import_backup
from .config import ShelflifeConfig, load_config
from .db import AffiliateCacheDB, ItemDB
from .errors import ItemNotFoundError
from .models import Category, ExpiryStatus, Item, parse_date
from .notify import create_notifier
from .notify.engine import NotificationEngine
from .reorder import ReorderLinkResolver
from .settings import (
    set_digest_mode,
    set_link_base,
    set_notifications_enabled,
    set_store_preference,
)
from .status import filter_items, get_expiry_status, summarize

_STATUS_CHOICES = {
    "active": ExpiryStatus.ACTIVE,
    "soon": ExpiryStatus.SOON,
    "expired": ExpiryStatus.EXPIRED,
}


def _on_off(value: str) -> bool:
    if value not in ("on", "off"):
        raise argparse.ArgumentTypeError("expected 'on' or 'off'")
    return value == "on"


def _parse_category(value: str) -> Category:
    for c in Category:
        if c.value.lower() == value.lower():
            return c
    choices = ", ".join(c.value for c in Category)
    raise ValueError(f"unknown category {value!r} ({choices})")


def _category(value: str) -> Category:
    try:
        return _parse_category(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shelflife",
        description="Track expiry dates, get reminded once, reorder in a click",
    )
    parser.add_argument(
        "--config", "-c", type=str, default=None, help="Path to a TOML config file"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    # list
    list_parser = sub.add_parser("list", help="List items")
    list_parser.add_argument("--status", choices=sorted(_STATUS_CHOICES))
    list_parser.add_argument("--search", default="", help="Filter by name")
    list_parser.add_argument("--json", action="store_true", help="Output JSON")

    # summary
    sub.add_parser("summary", help="Counts per status and urgent items")

    # add
    add_parser = sub.add_parser("add", help="Add an item")
    add_parser.add_argument("name")
    add_parser.add_argument("expiry", help="Expiry date (YYYY-MM-DD)")
    add_parser.add_argument("--category", type=_category, default=Category.GROCERY)
    add_parser.add_argument("--reminder-days", type=int, default=7)
    add_parser.add_argument("--notes", default=None)

    # edit
    edit_parser = sub.add_parser("edit", help="Edit an item")
    edit_parser.add_argument("id")
    edit_parser.add_argument("--name")
    edit_parser.add_argument("--expiry", help="Expiry date (YYYY-MM-DD)")
    edit_parser.add_argument("--category", type=_category)
    edit_parser.add_argument("--reminder-days", type=int)
    edit_parser.add_argument("--notes")

    # delete
    delete_parser = sub.add_parser("delete", help="Delete an item")
    delete_parser.add_argument("id")

    # snooze
    snooze_parser = sub.add_parser("snooze", help="Silence alerts for an item")
    snooze_parser.add_argument("id")
    snooze_parser.add_argument("--days", type=int, default=None)

    # check
    sub.add_parser("check", help="Run one expiry check and send alerts")

    # reorder
    reorder_parser = sub.add_parser("reorder", help="Show a purchase link")
    reorder_parser.add_argument("id")

    # export / import
    export_parser = sub.add_parser("export", help="Write a JSON backup")
    export_parser.add_argument("file", nargs="?", default=None)
    import_parser = sub.add_parser("import", help="Replace items from a JSON backup")
    import_parser.add_argument("file")

    # settings
    settings_parser = sub.add_parser("settings", help="Show or change settings")
    settings_parser.add_argument("--notifications", type=_on_off, metavar="on|off")
    settings_parser.add_argument("--digest", type=_on_off, metavar="on|off")
    settings_parser.add_argument(
        "--store",
        nargs=2,
        metavar=("CATEGORY", "URL"),
        help="Preferred search URL for a category (empty URL clears it)",
    )
    settings_parser.add_argument("--link-base", metavar="URL")

    # watch
    sub.add_parser("watch", help="Run periodic checks until interrupted")

    return parser


def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = load_config(args.config)
    db = ItemDB(config.database.path)
    try:
        _dispatch(config, db, args)
    except ValueError as e:
        # InvalidItemError, BackupError and bad settings values
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except ItemNotFoundError as e:
        print(f"Item not found: {e.args[0]}", file=sys.stderr)
        sys.exit(2)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


def _dispatch(config: ShelflifeConfig, db: ItemDB, args) -> None:
    match args.command:
        case "list":
            _cmd_list(db, args)
        case "summary":
            _cmd_summary(db)
        case "add":
            _cmd_add(db, args)
        case "edit":
            _cmd_edit(db, args)
        case "delete":
            _require(db, args.id)
            db.delete_item(args.id)
            print(f"Deleted {args.id}")
        case "snooze":
            days = args.days
            if days is None:
                days = config.notifications.default_snooze_days
            until = db.snooze_item(args.id, days)
            print(f"Snoozed {args.id} until {until:%Y-%m-%d %H:%M}")
        case "check":
            _cmd_check(config, db)
        case "reorder":
            asyncio.run(_cmd_reorder(config, db, args))
        case "export":
            _cmd_export(db, args)
        case "import":
            items = import_backup(db, Path(args.file).read_text(encoding="utf-8"))
            print(f"Imported {len(items)} items")
        case "settings":
            _cmd_settings(config, db, args)
        case "watch":
            _cmd_watch(config, db)


def _require(db: ItemDB, item_id: str) -> Item:
    item = db.get_item(item_id)
    if item is None:
        raise ItemNotFoundError(item_id)
    return item


def _cmd_list(db: ItemDB, args) -> None:
    today = date.today()
    status = _STATUS_CHOICES.get(args.status) if args.status else None
    items = filter_items(db.get_items(), today, status=status, search=args.search)

    if args.json:
        print(json.dumps([i.to_dict() for i in items], ensure_ascii=False, indent=2))
        return

    if not items:
        print("No items found.")
        return
    for item in items:
        s = get_expiry_status(item, today)
        print(
            f"  {item.id:<34} {item.name:<24} {item.expiry_date}  "
            f"[{s.value}] ({item.category.value})"
        )


def _cmd_summary(db: ItemDB) -> None:
    today = date.today()
    summary = summarize(db.get_items(), today)
    print(
        f"Active: {summary.counts[ExpiryStatus.ACTIVE]}  "
        f"Soon: {summary.counts[ExpiryStatus.SOON]}  "
        f"Expired: {summary.counts[ExpiryStatus.EXPIRED]}"
    )
    if not summary.urgent:
        print("All caught up!")
        return
    print("\nAction required:")
    for item in summary.urgent:
        s = get_expiry_status(item, today)
        print(f"  {item.name:<24} {item.expiry_date}  [{s.value}]")


def _cmd_add(db: ItemDB, args) -> None:
    item = Item(
        name=args.name,
        expiry_date=parse_date(args.expiry),
        category=args.category,
        reminder_days=args.reminder_days,
        notes=args.notes,
    )
    db.add_item(item)
    print(f"Added {item.name} ({item.id})")


def _cmd_edit(db: ItemDB, args) -> None:
    item = _require(db, args.id)
    changes = {}
    if args.name is not None:
        changes["name"] = args.name
    if args.expiry is not None:
        changes["expiry_date"] = parse_date(args.expiry)
    if args.category is not None:
        changes["category"] = args.category
    if args.reminder_days is not None:
        changes["reminder_days"] = args.reminder_days
    if args.notes is not None:
        changes["notes"] = args.notes or None

    db.edit_item(replace(item, **changes))
    print(f"Updated {item.id}")


def _cmd_check(config: ShelflifeConfig, db: ItemDB) -> None:
    engine = NotificationEngine(db, create_notifier(config))
    due = engine.check_and_notify()
    if not due:
        print("No new alerts.")
        return
    print(f"Sent alerts for {len(due)} items:")
    for d in due:
        print(f"  {d.item.name:<24} [{d.status.value}]")


async def _cmd_reorder(config: ShelflifeConfig, db: ItemDB, args) -> None:
    item = _require(db, args.id)
    cache = AffiliateCacheDB(
        config.database.path,
        ttl=timedelta(days=config.reorder.cache_ttl_days),
    )
    try:
        resolver = ReorderLinkResolver(
            cache,
            db,
            api_url=config.reorder.api_url,
            timeout=config.reorder.timeout,
        )
        link = await resolver.resolve(item)
    finally:
        cache.close()

    label = "affiliate" if link.is_affiliate else "direct"
    print(f"{link.url}  ({label})")


def _cmd_export(db: ItemDB, args) -> None:
    data = export_items(db.get_items())
    if args.file:
        Path(args.file).write_text(data, encoding="utf-8")
        print(f"Backup written to {args.file}")
    else:
        print(data)


def _cmd_settings(config: ShelflifeConfig, db: ItemDB, args) -> None:
    if args.notifications is not None:
        granted = set_notifications_enabled(
            db, create_notifier(config), args.notifications
        )
        if not granted:
            print("Permission denied: alerts will not be shown.", file=sys.stderr)
    if args.digest is not None:
        set_digest_mode(db, args.digest)
    if args.store is not None:
        category, url = args.store
        set_store_preference(db, _parse_category(category), url)
    if args.link_base is not None:
        set_link_base(db, args.link_base)

    print(json.dumps(db.get_app_settings().to_dict(), ensure_ascii=False, indent=2))


def _cmd_watch(config: ShelflifeConfig, db: ItemDB) -> None:
    from .scheduler import ExpiryCheckScheduler, run_forever

    engine = NotificationEngine(db, create_notifier(config))
    scheduler = ExpiryCheckScheduler(
        engine, interval_minutes=config.notifications.check_interval_minutes
    )
    print(
        f"Checking every {config.notifications.check_interval_minutes} minutes. "
        "Press Ctrl+C to stop."
    )
    try:
        asyncio.run(run_forever(scheduler))
    except KeyboardInterrupt:
        pass
