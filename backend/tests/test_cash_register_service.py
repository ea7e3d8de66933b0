import pytest

from backoffice.services import cash_register_service
from backoffice.services.cash_register_service import CashClosingError
from backoffice.services.reconciliation_service import reconcile
from backoffice.services.sales_data_service import FULFILLED_ORDER_STATUS
from backoffice.validation import ConflictError, ValidationError


def test_total_defaults_to_sum_of_channels(make_closing):
    closing = make_closing(cash_cents=150000, card_cents=80000, mobile_cents=2500, other_cents=100)

    assert closing.total_cents == 232600


def test_explicit_total_is_kept(make_closing):
    closing = make_closing(cash_cents=150000, total_cents=160000)

    assert closing.total_cents == 160000


@pytest.mark.parametrize("overrides", [
    {"cash_cents": -1},
    {"total_cents": 1_000_000_000},
    {"shift": "evening"},
    {"location_id": ""},
    {"date": None},
])
def test_create_rejects_invalid_input(make_closing, overrides):
    with pytest.raises(ValidationError):
        make_closing(**overrides)


def test_find_closing_for_returns_first_recorded(make_closing):
    first = make_closing()
    make_closing(responsible="Luis")

    found = cash_register_service.find_closing_for("cabildo", "2026-10-19", "morning")

    assert found.id == first.id


def test_update_recomputes_total(make_closing):
    closing = make_closing(cash_cents=100000, card_cents=50000)

    updated = cash_register_service.update_closing(closing.id, {"card_cents": 70000})

    assert updated.total_cents == 170000


def test_update_missing_closing(db_session):
    with pytest.raises(CashClosingError):
        cash_register_service.update_closing(404, {"notes": "x"})


def test_reconciled_closing_is_immutable(make_stock_record, make_closing, pos_source):
    record = make_stock_record()
    closing = make_closing()
    pos_source.add_order(1, record.date, FULFILLED_ORDER_STATUS, [(101, 10, 800000)])
    reconcile(record.id, closing.id, sales_source=pos_source)

    assert cash_register_service.is_reconciled(closing.id)
    with pytest.raises(ConflictError):
        cash_register_service.update_closing(closing.id, {"cash_cents": 800000})
