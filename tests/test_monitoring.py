from datetime import timedelta

import pytest

from errors import Internal
from monitoring import InventoryMonitor, cadence_days, days_since, is_outdated
from schemas import EMAIL_COLLECTION, INVENTORY_COLLECTION

from conftest import NOW


@pytest.mark.parametrize("frequency,days", [("daily", 1), ("weekly", 7), ("monthly", 30), ("hourly", 1)])
def test_cadence_days(frequency, days):
    assert cadence_days(frequency) == days


@pytest.mark.parametrize("days_ago,frequency,outdated", [
    (10, "weekly", True),
    (5, "weekly", False),
    (7, "weekly", True),
    (1, "daily", True),
    (0, "daily", False),
    (29, "monthly", False),
    (30, "monthly", True),
])
def test_is_outdated(days_ago, frequency, outdated):
    item = {"last_updated": NOW - timedelta(days=days_ago), "update_frequency": frequency}
    assert is_outdated(item, NOW) is outdated


def test_partial_days_are_floored():
    last = NOW - timedelta(days=6, hours=23, minutes=59)
    assert days_since(last, NOW) == 6
    assert is_outdated({"last_updated": last, "update_frequency": "weekly"}, NOW) is False


def test_items_missing_timestamp_or_frequency_are_never_flagged():
    assert is_outdated({"update_frequency": "daily"}, NOW) is False
    assert is_outdated({"last_updated": NOW - timedelta(days=400)}, NOW) is False


def test_naive_and_iso_timestamps_are_read_as_utc():
    naive = (NOW - timedelta(days=2)).replace(tzinfo=None)
    assert is_outdated({"last_updated": naive, "update_frequency": "daily"}, NOW) is True
    iso = (NOW - timedelta(days=2)).isoformat().replace("+00:00", "Z")
    assert is_outdated({"last_updated": iso, "update_frequency": "daily"}, NOW) is True


def test_sweep_sends_one_summary(store, monitor, make_item):
    make_item("Flour", days_ago=10, update_frequency="weekly")
    make_item("Salt", days_ago=5, update_frequency="weekly")
    make_item("Milk", days_ago=2, update_frequency="daily")
    make_item("Sugar")

    outdated = monitor.check_outdated_items()

    assert [item["name"] for item in outdated] == ["Flour", "Milk"]
    emails = store.get_documents(EMAIL_COLLECTION)
    assert len(emails) == 1
    html = emails[0]["message"]["html"]
    assert "Flour" in html and "Milk" in html
    assert "Salt" not in html and "Sugar" not in html
    assert "07/10/2026" in html
    assert emails[0]["to"] == ["gerencia@thewindow.es"]
    assert "order_id" not in emails[0]


def test_sweep_sends_nothing_when_up_to_date(store, monitor, make_item):
    make_item("Salt", days_ago=5, update_frequency="weekly")

    assert monitor.check_outdated_items() == []
    assert store.get_documents(EMAIL_COLLECTION) == []


def test_sweep_twice_sends_twice_and_changes_no_items(store, monitor, make_item):
    make_item("Flour", days_ago=10, update_frequency="weekly")
    before = store.get_documents(INVENTORY_COLLECTION)

    monitor.check_outdated_items()
    monitor.check_outdated_items()

    assert len(store.get_documents(EMAIL_COLLECTION)) == 2
    assert store.get_documents(INVENTORY_COLLECTION) == before


def test_sweep_limited_to_one_restaurant(store, monitor, make_item, restaurant_id):
    make_item("Flour", days_ago=10, update_frequency="weekly")
    make_item("Rice", days_ago=10, update_frequency="weekly", owner="5f1111111111111111111111")

    outdated = monitor.check_outdated_items(restaurant_id)

    assert [item["name"] for item in outdated] == ["Flour"]


def test_sweep_needs_a_recipient(store, emails, make_item):
    make_item("Flour", days_ago=10, update_frequency="weekly")
    monitor = InventoryMonitor(store, emails, "", now=lambda: NOW)

    with pytest.raises(Internal):
        monitor.check_outdated_items()
