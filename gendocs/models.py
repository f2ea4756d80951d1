import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, Union

from pydantic import BaseModel, ConfigDict, Field


def new_id() -> str:
    return uuid.uuid4().hex


def now_iso() -> str:
    """Current UTC time as ISO 8601 with millisecond precision, e.g. 2025-01-01T09:30:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class DocumentType(str, Enum):
    INVOICE = "Invoice"
    QUOTATION = "Quotation"


class _Model(BaseModel):
    # camelCase on the wire and in storage, snake_case in Python
    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Customer(_Model):
    id: str = Field(default_factory=new_id)
    name: str
    email: str
    address: str = ""


# Stands in for any customerId that no longer resolves.
UNKNOWN_CUSTOMER = Customer(id="", name="Unknown", email="", address="")


class LineItem(_Model):
    id: str = Field(default_factory=new_id)
    description: str = ""
    quantity: float = 1
    unit_price: float = Field(0, alias="unitPrice")


class Document(_Model):
    id: str = Field(default_factory=new_id)
    customer_id: str = Field(..., alias="customerId")
    type: DocumentType
    date: str = Field(default_factory=now_iso)
    line_items: List[LineItem] = Field(default_factory=list, alias="lineItems")


def line_total(item: LineItem) -> float:
    return item.quantity * item.unit_price


def document_total(doc: Union[Document, Iterable[LineItem]]) -> float:
    items = doc.line_items if isinstance(doc, Document) else doc
    return sum((line_total(it) for it in items), 0.0)


def format_money(value: float) -> str:
    return f"${float(value):.2f}"


def format_date(value: str) -> str:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%Y-%m-%d")
    except (AttributeError, ValueError):
        return str(value)
