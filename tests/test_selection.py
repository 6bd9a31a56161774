"""Tests for the datastore/table choosers and selection validation."""

from datastep.selection import (
    SELECT_DATASTORE,
    SELECT_TABLE,
    datastore_icon,
    datastore_names,
    datastore_text,
    find_datastore,
    is_complete,
    resolve_table,
    select_datastore,
    select_table,
    table_icon,
    table_names,
    table_text,
)
from datastep.types import IconType, Selection

USER_ID = 7


def test_incomplete_when_slots_unset(host):
    assert not is_complete(host, USER_ID, Selection())
    assert not is_complete(host, USER_ID, Selection(datastore="Sales"))
    assert not is_complete(host, USER_ID, Selection(table="orders"))


def test_complete_when_both_resolve(host):
    selection = Selection(datastore="Sales", table="orders")
    assert is_complete(host, USER_ID, selection)


def test_incomplete_for_unknown_names(host):
    assert not is_complete(
        host, USER_ID, Selection(datastore="Sales", table="invoices")
    )
    assert not is_complete(
        host, USER_ID, Selection(datastore="Finance", table="orders")
    )


def test_table_lookup_is_case_sensitive(host):
    assert not is_complete(
        host, USER_ID, Selection(datastore="Sales", table="ORDERS")
    )


def test_incomplete_after_datastore_removed(host):
    selection = Selection(datastore="Sales", table="orders")
    assert is_complete(host, USER_ID, selection)

    host.remove("Sales")
    assert not is_complete(host, USER_ID, selection)


def test_incomplete_after_table_deleted(host, sales_store):
    selection = Selection(datastore="Sales", table="orders")
    assert is_complete(host, USER_ID, selection)

    (sales_store.root / "orders.csv").unlink()
    sales_store.refresh_synchronous()
    assert not is_complete(host, USER_ID, selection)


def test_incomplete_for_user_without_access(host, import_store):
    (import_store.root / "mine.txt").write_text("a\n", encoding="utf-8")
    import_store.refresh_synchronous()
    selection = Selection(datastore="My Files", table="mine")

    assert is_complete(host, USER_ID, selection)
    assert not is_complete(host, USER_ID + 1, selection)


def test_changing_datastore_clears_table():
    selection = Selection(datastore="Sales", table="orders")
    changed = select_datastore(selection, "My Files")
    assert changed == Selection(datastore="My Files", table=None)


def test_reselecting_same_datastore_keeps_table():
    selection = Selection(datastore="Sales", table="orders")
    assert select_datastore(selection, "Sales") is selection


def test_clearing_datastore_clears_table():
    selection = Selection(datastore="Sales", table="orders")
    assert select_datastore(selection, None) == Selection()


def test_select_table():
    selection = select_table(Selection(datastore="Sales"), "orders")
    assert selection == Selection(datastore="Sales", table="orders")


def test_datastore_names(host):
    assert datastore_names(host, USER_ID) == ["My Files", "Sales"]
    assert datastore_names(host, USER_ID + 1) == ["Sales"]


def test_find_datastore(host, sales_store):
    assert find_datastore(host, USER_ID, "Sales") is sales_store
    assert find_datastore(host, USER_ID, "sales") is None


def test_table_names(host):
    assert table_names(host, USER_ID, "Sales") == ["orders"]
    assert table_names(host, USER_ID, None) == []
    assert table_names(host, USER_ID, "Finance") == []


def test_resolve_table(host):
    table = resolve_table(host, USER_ID, "Sales", "orders")
    assert table is not None
    assert table.display_name == "orders"
    assert resolve_table(host, USER_ID, "Finance", "orders") is None


def test_chooser_text():
    assert datastore_text(Selection()) == SELECT_DATASTORE
    assert table_text(Selection()) == SELECT_TABLE
    selection = Selection(datastore="Sales", table="orders")
    assert datastore_text(selection) == "Sales"
    assert table_text(selection) == "orders"


def test_chooser_icons():
    assert datastore_icon(Selection()) == IconType.ERROR
    assert table_icon(Selection(datastore="Sales")) == IconType.ERROR
    assert datastore_icon(Selection(datastore="Sales")) == IconType.OK
    assert table_icon(Selection(table="orders")) == IconType.OK
