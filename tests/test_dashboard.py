from __future__ import annotations

from gendocs.dashboard import build_dashboard
from gendocs.models import Customer, Document, DocumentType, LineItem


def _doc(doc_type: DocumentType, customer_id: str, *prices: float) -> Document:
    return Document(
        customer_id=customer_id,
        type=doc_type,
        date="2025-02-03T12:00:00.000Z",
        line_items=[LineItem(description="x", quantity=1, unit_price=p) for p in prices],
    )


def test_partitions_documents_by_type() -> None:
    ada = Customer(name="Ada", email="ada@example.com")
    docs = [
        _doc(DocumentType.INVOICE, ada.id, 100),
        _doc(DocumentType.QUOTATION, ada.id, 10, 20),
        _doc(DocumentType.INVOICE, ada.id, 5),
        _doc(DocumentType.QUOTATION, ada.id),
    ]
    board = build_dashboard([ada], docs)

    assert all(r.type is DocumentType.INVOICE for r in board.invoices)
    assert all(r.type is DocumentType.QUOTATION for r in board.quotations)
    invoice_ids = [r.id for r in board.invoices]
    quotation_ids = [r.id for r in board.quotations]
    assert not set(invoice_ids) & set(quotation_ids)
    assert sorted(invoice_ids + quotation_ids) == sorted(d.id for d in docs)
    assert invoice_ids == [docs[0].id, docs[2].id]
    assert board.invoice_total == 105
    assert board.quotation_total == 30


def test_rows_resolve_names_totals_and_dates() -> None:
    ada = Customer(name="Ada", email="ada@example.com")
    board = build_dashboard(
        [ada],
        [_doc(DocumentType.INVOICE, ada.id, 99.5), _doc(DocumentType.INVOICE, "deleted", 1)],
    )
    first, dangling = board.invoices
    assert first.customer_name == "Ada"
    assert first.total_display == "$99.50"
    assert first.date_display == "2025-02-03"
    assert dangling.customer_name == "Unknown"


def test_empty_dashboard() -> None:
    board = build_dashboard([], [])
    assert board.is_empty
    data = board.to_json()
    assert data["counts"] == {"invoices": 0, "quotations": 0}
