from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .models import (
    UNKNOWN_CUSTOMER,
    Customer,
    Document,
    DocumentType,
    document_total,
    format_date,
    format_money,
)


@dataclass
class DocumentRow:
    id: str
    type: DocumentType
    customer_name: str
    total: float
    date: str

    @property
    def total_display(self) -> str:
        return format_money(self.total)

    @property
    def date_display(self) -> str:
        return format_date(self.date)

    def to_json(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "customerName": self.customer_name,
            "total": self.total,
            "totalDisplay": self.total_display,
            "date": self.date,
            "dateDisplay": self.date_display,
        }


@dataclass
class Dashboard:
    invoices: List[DocumentRow] = field(default_factory=list)
    quotations: List[DocumentRow] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.invoices and not self.quotations

    @property
    def invoice_total(self) -> float:
        return sum((r.total for r in self.invoices), 0.0)

    @property
    def quotation_total(self) -> float:
        return sum((r.total for r in self.quotations), 0.0)

    def to_json(self) -> dict:
        return {
            "invoices": [r.to_json() for r in self.invoices],
            "quotations": [r.to_json() for r in self.quotations],
            "counts": {"invoices": len(self.invoices), "quotations": len(self.quotations)},
            "totals": {"invoices": self.invoice_total, "quotations": self.quotation_total},
        }


def build_dashboard(customers: Sequence[Customer], documents: Sequence[Document]) -> Dashboard:
    """Split documents by type, in insertion order, with resolved customer names and totals."""
    names: Dict[str, str] = {c.id: c.name for c in customers}
    board = Dashboard()
    for doc in documents:
        row = DocumentRow(
            id=doc.id,
            type=doc.type,
            customer_name=names.get(doc.customer_id, UNKNOWN_CUSTOMER.name),
            total=document_total(doc),
            date=doc.date,
        )
        if doc.type is DocumentType.INVOICE:
            board.invoices.append(row)
        else:
            board.quotations.append(row)
    return board
