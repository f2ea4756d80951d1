from __future__ import annotations

import pytest

from gendocs.models import (
    Document,
    DocumentType,
    LineItem,
    document_total,
    format_date,
    format_money,
    line_total,
    new_id,
    now_iso,
)


@pytest.mark.parametrize(
    "quantity, unit_price, expected",
    [(2, 3, 6), (0, 99, 0), (5, 0, 0), (2.5, 10, 25.0)],
)
def test_line_total(quantity, unit_price, expected) -> None:
    assert line_total(LineItem(quantity=quantity, unit_price=unit_price)) == expected


def test_document_total_sums_line_totals() -> None:
    doc = Document(
        customer_id="c1",
        type=DocumentType.INVOICE,
        line_items=[
            LineItem(description="Design", quantity=10, unit_price=50),
            LineItem(description="Hosting", quantity=1, unit_price=120),
        ],
    )
    assert document_total(doc) == 620
    assert document_total(doc.line_items) == 620


def test_document_total_of_empty_document_is_zero() -> None:
    doc = Document(customer_id="c1", type=DocumentType.QUOTATION)
    assert document_total(doc) == 0


def test_line_item_defaults() -> None:
    item = LineItem()
    assert item.quantity == 1
    assert item.unit_price == 0
    assert item.description == ""


def test_document_json_uses_camel_case() -> None:
    doc = Document(customer_id="c1", type=DocumentType.INVOICE, line_items=[LineItem(unit_price=3)])
    data = doc.to_json()
    assert data["customerId"] == "c1"
    assert data["type"] == "Invoice"
    assert data["lineItems"][0]["unitPrice"] == 3
    assert Document.model_validate(data) == doc


def test_new_ids_are_unique() -> None:
    ids = {new_id() for _ in range(1000)}
    assert len(ids) == 1000


def test_now_iso_is_utc_iso8601() -> None:
    stamp = now_iso()
    assert stamp.endswith("Z")
    assert format_date(stamp) == stamp[:10]


def test_format_helpers() -> None:
    assert format_money(100) == "$100.00"
    assert format_money(0.5) == "$0.50"
    assert format_date("2025-03-04T10:00:00.000Z") == "2025-03-04"
    assert format_date("not a date") == "not a date"
