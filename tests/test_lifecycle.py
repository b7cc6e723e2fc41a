from datetime import datetime, timezone

import pytest

from cafe_billing.errors import (
    BillNotFound,
    BillNotPending,
    EmptyBill,
    EmptyName,
    IllegalStateTransition,
    InvalidPrice,
    InvalidQuantity,
    ItemIndexOutOfRange,
    NoTableSelected,
)
from cafe_billing.lifecycle import BillDraft, BillLifecycleEngine, parse_quantity
from cafe_billing.models import BillStatus, LineItem


def _assert_invariants(repository):
    for bill in repository.load_all():
        assert bill.total_amount == sum(item.unit_price * item.quantity for item in bill.items)
        names = [item.name for item in bill.items]
        assert len(names) == len(set(names))
        assert all(item.quantity > 0 for item in bill.items)


@pytest.fixture
def espresso_bill(engine):
    return engine.create_bill("5", [LineItem("Espresso", 80, 1)])


def test_create_bill(engine, repository, espresso_bill):
    bills = repository.load_all()
    assert bills == [espresso_bill]
    assert espresso_bill.status is BillStatus.PENDING
    assert espresso_bill.total_amount == 80
    assert espresso_bill.table_no == "5"
    assert espresso_bill.created_at == datetime(2025, 2, 6, 10, 30, tzinfo=timezone.utc)
    assert espresso_bill.completed_at is None
    assert espresso_bill.bill_id.startswith("BILL-")


def test_create_bill_validation(engine, repository):
    with pytest.raises(NoTableSelected):
        engine.create_bill("  ", [LineItem("Espresso", 80, 1)])
    with pytest.raises(EmptyBill):
        engine.create_bill("5", [])
    with pytest.raises(InvalidQuantity):
        engine.create_bill("5", [LineItem("Espresso", 80, 0)])
    with pytest.raises(InvalidPrice):
        engine.create_bill("5", [LineItem("Espresso", 0, 1)])
    assert repository.load_all() == []


def test_create_bill_merges_duplicate_names(engine):
    bill = engine.create_bill("2", [LineItem("Latte", 130, 1), LineItem("Soup", 90, 1), LineItem("Latte", 130, 2)])
    assert bill.items == (LineItem("Latte", 130, 3), LineItem("Soup", 90, 1))
    assert bill.total_amount == 480


def test_bill_ids_are_unique_even_with_a_frozen_clock(repository):
    frozen = datetime(2025, 2, 6, 10, 30, tzinfo=timezone.utc)
    engine = BillLifecycleEngine(repository, clock=lambda: frozen)
    ids = [engine.create_bill("1", [LineItem("Tea", 20, 1)]).bill_id for _ in range(3)]
    assert len(set(ids)) == 3
    assert ids == sorted(ids)


def test_bill_ids_skip_ids_already_stored(repository, espresso_bill):
    restarted = BillLifecycleEngine(repository, clock=lambda: espresso_bill.created_at)
    bill = restarted.create_bill("6", [LineItem("Tea", 20, 1)])
    assert bill.bill_id != espresso_bill.bill_id


def test_add_item_merges_same_name(engine, repository, espresso_bill):
    bill = engine.add_item(espresso_bill.bill_id, "Espresso", 80)
    assert bill.items == (LineItem("Espresso", 80, 2),)
    assert bill.total_amount == 160
    assert repository.find_by_id(espresso_bill.bill_id) == bill


def test_add_item_appends_new_name(engine, repository, espresso_bill):
    bill = engine.add_item(espresso_bill.bill_id, "Samosa", 30)
    assert [item.name for item in bill.items] == ["Espresso", "Samosa"]
    assert bill.total_amount == 110
    _assert_invariants(repository)


def test_add_item_validation(engine, repository, espresso_bill):
    with pytest.raises(BillNotFound):
        engine.add_item("BILL-0", "Tea", 20)
    with pytest.raises(EmptyName):
        engine.add_item(espresso_bill.bill_id, " ", 20)
    with pytest.raises(InvalidPrice):
        engine.add_item(espresso_bill.bill_id, "Tea", -5)
    assert repository.load_all() == [espresso_bill]


def test_change_quantity_to_zero_removes_item(engine, espresso_bill):
    engine.add_item(espresso_bill.bill_id, "Espresso", 80)
    bill = engine.change_quantity(espresso_bill.bill_id, 0, -2)
    assert bill.items == ()
    assert bill.total_amount == 0
    assert bill.status is BillStatus.PENDING


def test_change_quantity_below_zero_removes_item(engine, espresso_bill):
    bill = engine.change_quantity(espresso_bill.bill_id, 0, -5)
    assert bill.items == ()


def test_change_quantity_increment(engine, espresso_bill):
    bill = engine.change_quantity(espresso_bill.bill_id, 0, 3)
    assert bill.items[0].quantity == 4
    assert bill.total_amount == 320


def test_change_quantity_bad_index(engine, repository, espresso_bill):
    with pytest.raises(ItemIndexOutOfRange):
        engine.change_quantity(espresso_bill.bill_id, 1, 1)
    with pytest.raises(ItemIndexOutOfRange):
        engine.change_quantity(espresso_bill.bill_id, -1, 1)
    assert repository.load_all() == [espresso_bill]


def test_set_quantity(engine, espresso_bill):
    bill = engine.set_quantity(espresso_bill.bill_id, 0, 6)
    assert bill.items[0].quantity == 6
    assert bill.total_amount == 480

    bill = engine.set_quantity(espresso_bill.bill_id, 0, 0)
    assert bill.items == ()
    assert bill.total_amount == 0


def test_set_quantity_rejects_non_integer(engine, repository, espresso_bill):
    with pytest.raises(InvalidQuantity):
        engine.set_quantity(espresso_bill.bill_id, 0, 2.5)
    with pytest.raises(InvalidQuantity):
        engine.set_quantity(espresso_bill.bill_id, 0, "3")
    with pytest.raises(InvalidQuantity):
        engine.set_quantity(espresso_bill.bill_id, 0, True)
    assert repository.load_all() == [espresso_bill]


@pytest.mark.parametrize("delta", [0.5, "1", True, None])
def test_change_quantity_rejects_non_integer_delta(engine, repository, espresso_bill, delta):
    with pytest.raises(InvalidQuantity):
        engine.change_quantity(espresso_bill.bill_id, 0, delta)
    assert repository.load_all() == [espresso_bill]
    _assert_invariants(repository)


def test_remove_item(engine, repository, espresso_bill):
    engine.add_item(espresso_bill.bill_id, "Cookies", 40)
    bill = engine.remove_item(espresso_bill.bill_id, 0)
    assert bill.items == (LineItem("Cookies", 40, 1),)
    assert bill.total_amount == 40
    with pytest.raises(ItemIndexOutOfRange):
        engine.remove_item(espresso_bill.bill_id, 3)
    _assert_invariants(repository)


def test_complete_bill(engine, repository, espresso_bill, clock):
    completed = engine.complete_bill(espresso_bill.bill_id)
    assert completed.status is BillStatus.COMPLETED
    assert completed.completed_at is not None
    assert completed.completed_at > completed.created_at
    assert repository.find_by_id(espresso_bill.bill_id) == completed


def test_complete_bill_twice_is_a_no_op(engine, repository, espresso_bill):
    first = engine.complete_bill(espresso_bill.bill_id)
    stored = repository.store.read("cafe-bills")
    second = engine.complete_bill(espresso_bill.bill_id)
    assert second == first
    assert second.completed_at == first.completed_at
    assert repository.store.read("cafe-bills") == stored


def test_complete_unknown_bill(engine):
    with pytest.raises(BillNotFound):
        engine.complete_bill("BILL-42")


@pytest.mark.parametrize(
    "mutate",
    [
        lambda engine, bill_id: engine.add_item(bill_id, "Latte", 130),
        lambda engine, bill_id: engine.change_quantity(bill_id, 0, 1),
        lambda engine, bill_id: engine.set_quantity(bill_id, 0, 3),
        lambda engine, bill_id: engine.remove_item(bill_id, 0),
    ],
)
def test_completed_bill_is_frozen(engine, repository, espresso_bill, mutate):
    engine.complete_bill(espresso_bill.bill_id)
    stored = repository.store.read("cafe-bills")

    with pytest.raises(IllegalStateTransition) as excinfo:
        mutate(engine, espresso_bill.bill_id)

    assert isinstance(excinfo.value, BillNotPending)
    assert repository.store.read("cafe-bills") == stored


def test_cancel_pending_bill(engine, repository, espresso_bill):
    other = engine.create_bill("3", [LineItem("Pasta", 150, 1)])
    removed = engine.cancel_bill(espresso_bill.bill_id)
    assert removed == espresso_bill
    assert repository.load_all() == [other]
    with pytest.raises(BillNotFound):
        engine.cancel_bill(espresso_bill.bill_id)


def test_cancel_does_not_check_status(engine, repository, espresso_bill):
    engine.complete_bill(espresso_bill.bill_id)
    removed = engine.cancel_bill(espresso_bill.bill_id)
    assert removed.status is BillStatus.COMPLETED
    assert repository.load_all() == []


def test_get_bill(engine, espresso_bill):
    assert engine.get_bill(espresso_bill.bill_id) == espresso_bill
    with pytest.raises(BillNotFound):
        engine.get_bill("nope")


def test_scenarios_a_to_d(engine, repository):
    bill = engine.create_bill("5", [LineItem("Espresso", 80, 1)])
    assert len(repository.filter_by_status(BillStatus.PENDING)) == 1
    assert bill.total_amount == 80

    bill = engine.add_item(bill.bill_id, "Espresso", 80)
    assert len(bill.items) == 1 and bill.items[0].quantity == 2
    assert bill.total_amount == 160

    bill = engine.change_quantity(bill.bill_id, 0, -2)
    assert bill.items == () and bill.total_amount == 0

    bill = engine.complete_bill(bill.bill_id)
    assert bill.status is BillStatus.COMPLETED and bill.completed_at is not None
    with pytest.raises(IllegalStateTransition):
        engine.add_item(bill.bill_id, "Espresso", 80)
    assert repository.find_by_id(bill.bill_id) == bill
    _assert_invariants(repository)


@pytest.mark.parametrize("raw, expected", [("3", 3), (" 12 ", 12), (0, 0), ("0", 0), (5, 5)])
def test_parse_quantity(raw, expected):
    assert parse_quantity(raw) == expected


@pytest.mark.parametrize("raw", ["", "abc", "2.5", "-1", -1, 1.0, None, False])
def test_parse_quantity_rejects(raw):
    with pytest.raises(InvalidQuantity):
        parse_quantity(raw)


def test_draft_builds_a_bill(engine):
    draft = BillDraft()
    assert draft.is_empty and draft.total == 0

    draft.add("Burger", 120)
    draft.add("Cold Coffee", "110")
    draft.add("Burger", 120)
    assert draft.items == [LineItem("Burger", 120, 2), LineItem("Cold Coffee", 110, 1)]
    assert draft.total == 350

    draft.change_quantity(1, -1)
    draft.change_quantity(7, 1)
    assert draft.items == [LineItem("Burger", 120, 2)]

    bill = engine.create_bill("8", draft.items)
    assert bill.total_amount == 240

    draft.remove(0)
    assert draft.is_empty
    draft.add("Soup", 90)
    draft.clear()
    assert draft.items == []


def test_draft_validation():
    draft = BillDraft()
    with pytest.raises(EmptyName):
        draft.add("", 10)
    with pytest.raises(InvalidPrice):
        draft.add("Tea", 0)
    assert draft.is_empty

    draft.add("Tea", 20)
    with pytest.raises(InvalidQuantity):
        draft.change_quantity(0, 0.5)
    assert draft.items == [LineItem("Tea", 20, 1)]
