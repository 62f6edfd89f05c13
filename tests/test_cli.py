"""Tests for the command-line interface."""

import json
from datetime import date, timedelta

import pytest

from shelflife.cli import build_parser, main
from shelflife.db import ItemDB
from shelflife.models import Category, ExpiryStatus, Item


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "cli.db"
    monkeypatch.setenv("SHELFLIFE_DB_PATH", str(path))
    monkeypatch.delenv("SHELFLIFE_AFFILIATE_API_URL", raising=False)
    db = ItemDB(path)
    db.save_items([])
    db.close()
    return path


def _add(db_path, item):
    db = ItemDB(db_path)
    try:
        db.add_item(item)
    finally:
        db.close()


def _get(db_path, item_id):
    db = ItemDB(db_path)
    try:
        return db.get_item(item_id)
    finally:
        db.close()


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1
    assert "usage" in capsys.readouterr().out


def test_parser_rejects_unknown_category():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["add", "Milk", "2025-01-01", "--category", "Toys"])


def test_add_and_list(db_path, capsys):
    main(["add", "Cough Syrup", "2030-01-01", "--category", "medicine",
          "--reminder-days", "10"])
    assert "Added Cough Syrup" in capsys.readouterr().out

    main(["list", "--json"])
    data = json.loads(capsys.readouterr().out)
    assert len(data) == 1
    assert data[0]["category"] == "Medicine"
    assert data[0]["reminderDays"] == 10


def test_add_negative_reminder_days_fails(db_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["add", "Milk", "2030-01-01", "--reminder-days", "-1"])
    assert exc.value.code == 2
    assert "reminder_days" in capsys.readouterr().err


def test_list_filters_by_status(db_path, capsys):
    today = date.today()
    _add(db_path, Item(id="old", name="Old Yogurt", expiry_date=today - timedelta(days=2)))
    _add(db_path, Item(id="new", name="Fresh Rice", expiry_date=today + timedelta(days=300)))

    main(["list", "--status", "expired"])
    out = capsys.readouterr().out
    assert "Old Yogurt" in out
    assert "Fresh Rice" not in out


def test_summary(db_path, capsys):
    today = date.today()
    _add(db_path, Item(id="a", name="Old Yogurt", expiry_date=today - timedelta(days=2)))
    _add(db_path, Item(id="b", name="Rice", expiry_date=today + timedelta(days=300)))

    main(["summary"])
    out = capsys.readouterr().out
    assert "Active: 1" in out
    assert "Expired: 1" in out
    assert "Old Yogurt" in out


def test_edit_resets_marker(db_path, capsys):
    _add(db_path, Item(
        id="x", name="Milk", expiry_date=date.today(),
        last_notified_status=ExpiryStatus.SOON,
    ))

    main(["edit", "x", "--expiry", "2031-05-05", "--category", "Others"])

    item = _get(db_path, "x")
    assert item.expiry_date == date(2031, 5, 5)
    assert item.category is Category.OTHERS
    assert item.last_notified_status is None


def test_edit_missing_item(db_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["edit", "ghost", "--name", "Nope"])
    assert exc.value.code == 2
    assert "ghost" in capsys.readouterr().err


def test_snooze(db_path, capsys):
    _add(db_path, Item(id="x", name="Milk", expiry_date=date.today()))
    main(["snooze", "x", "--days", "2"])

    assert "Snoozed x" in capsys.readouterr().out
    assert _get(db_path, "x").snoozed_until is not None


def test_check_sends_alert_once(db_path, capsys):
    _add(db_path, Item(id="x", name="Milk", expiry_date=date.today()))
    main(["settings", "--notifications", "on"])
    capsys.readouterr()

    main(["check"])
    assert "Sent alerts for 1 items" in capsys.readouterr().out

    main(["check"])
    assert "No new alerts." in capsys.readouterr().out
    assert _get(db_path, "x").last_notified_status is ExpiryStatus.SOON


def test_check_disabled_by_default(db_path, capsys):
    _add(db_path, Item(id="x", name="Milk", expiry_date=date.today()))
    main(["check"])
    assert "No new alerts." in capsys.readouterr().out


def test_settings_store_preference(db_path, capsys):
    main(["settings", "--digest", "on", "--store", "medicine", "https://ph.example/?q="])
    data = json.loads(capsys.readouterr().out)
    assert data["digestModeEnabled"] is True
    assert data["categoryStorePreferences"] == {"Medicine": "https://ph.example/?q="}


def test_settings_bad_category(db_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["settings", "--store", "Toys", "https://x.example/?q="])
    assert exc.value.code == 2


def test_reorder_without_api_uses_search_link(db_path, capsys):
    _add(db_path, Item(id="x", name="Green Tea", expiry_date=date.today()))
    main(["reorder", "x"])
    out = capsys.readouterr().out
    assert "https://www.amazon.in/s?k=Green%20Tea" in out
    assert "(direct)" in out


def test_export_and_import(db_path, tmp_path, capsys):
    _add(db_path, Item(id="x", name="Milk", expiry_date=date(2030, 1, 1)))
    backup = tmp_path / "backup.json"

    main(["export", str(backup)])
    main(["delete", "x"])
    assert _get(db_path, "x") is None

    main(["import", str(backup)])
    assert _get(db_path, "x").name == "Milk"


def test_import_invalid_document(db_path, tmp_path, capsys):
    _add(db_path, Item(id="keep", name="Milk", expiry_date=date(2030, 1, 1)))
    bad = tmp_path / "bad.json"
    bad.write_text('{"items": []}')

    with pytest.raises(SystemExit) as exc:
        main(["import", str(bad)])
    assert exc.value.code == 2
    assert "must be a list" in capsys.readouterr().err
    assert _get(db_path, "keep") is not None


def test_add_then_delete_on_fresh_db_stays_empty(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("SHELFLIFE_DB_PATH", str(tmp_path / "fresh.db"))
    monkeypatch.delenv("SHELFLIFE_AFFILIATE_API_URL", raising=False)

    main(["add", "Eggs", "2030-01-01"])
    main(["list", "--json"])
    added = json.loads(capsys.readouterr().out.split("\n", 1)[1])
    assert [i["name"] for i in added] == ["Eggs"]

    main(["delete", added[0]["id"]])
    capsys.readouterr()
    main(["list"])
    assert "No items found." in capsys.readouterr().out
