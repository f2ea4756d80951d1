import threading
from typing import Any, Dict, List, Optional, Sequence

from .ai import LineItemGenerator
from .customers import CustomerManager
from .errors import GenerationInProgress, ValidationError
from .logging import get_logger
from .models import Customer, Document, DocumentType, LineItem, document_total, now_iso
from .storage import PersistentState

log = get_logger("creator")

NUMERIC_FIELDS = {"quantity": "quantity", "unitPrice": "unit_price", "unit_price": "unit_price"}
EDITABLE_FIELDS = {"description": "description", **NUMERIC_FIELDS}


def coerce_number(value: Any) -> float:
    """Form input to a number; anything unparseable (or NaN) becomes 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        n = float(value)
    except (TypeError, ValueError):
        return 0.0
    return n if n == n else 0.0


class DocumentCreator:
    """The in-progress draft of one invoice or quotation.

    Edits are synchronous and serialized by a lock. ``generate_with_ai`` is
    single-flight: a second call while one is running is rejected, and a
    result that arrives after the draft was reset is dropped.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._generation = 0
        self.is_loading = False
        self._clear()

    def _clear(self) -> None:
        self.doc_type = DocumentType.INVOICE
        self.customer_id = ""
        self.line_items: List[LineItem] = []
        self.ai_prompt = ""

    @property
    def total(self) -> float:
        return document_total(self.line_items)

    def to_json(self) -> dict:
        with self._lock:
            return {
                "type": self.doc_type.value,
                "customerId": self.customer_id,
                "lineItems": [it.to_json() for it in self.line_items],
                "aiPrompt": self.ai_prompt,
                "isLoading": self.is_loading,
                "total": self.total,
            }

    # -------------------------
    # Draft fields
    # -------------------------
    def select_default_customer(self, customers: Sequence[Customer]) -> None:
        with self._lock:
            if not customers:
                return
            if not self.customer_id or all(c.id != self.customer_id for c in customers):
                self.customer_id = customers[0].id

    def set_type(self, value: Any) -> None:
        try:
            doc_type = DocumentType(value)
        except ValueError as e:
            raise ValidationError(f"Unknown document type: {value!r}") from e
        with self._lock:
            self.doc_type = doc_type

    def set_customer(self, customer_id: str) -> None:
        with self._lock:
            self.customer_id = (customer_id or "").strip()

    def set_prompt(self, prompt: str) -> None:
        with self._lock:
            self.ai_prompt = prompt or ""

    # -------------------------
    # Line items
    # -------------------------
    def add_line_item(self) -> LineItem:
        item = LineItem(description="", quantity=1, unit_price=0)
        with self._lock:
            self.line_items = [*self.line_items, item]
        return item

    def remove_line_item(self, item_id: str) -> None:
        with self._lock:
            self.line_items = [it for it in self.line_items if it.id != item_id]

    def update_line_item(self, item_id: str, field: str, value: Any) -> Optional[LineItem]:
        return self.update_line_item_fields(item_id, {field: value})

    def update_line_item_fields(self, item_id: str, updates: Dict[str, Any]) -> Optional[LineItem]:
        """Apply several field edits to one item at once; any unknown field rejects them all."""
        changes = {}
        for field, value in updates.items():
            attr = EDITABLE_FIELDS.get(field)
            if attr is None:
                raise ValidationError(f"Line item has no editable field {field!r}")
            changes[attr] = coerce_number(value) if field in NUMERIC_FIELDS else str(value if value is not None else "")

        with self._lock:
            updated = None
            items = []
            for it in self.line_items:
                if it.id == item_id:
                    it = it.model_copy(update=changes)
                    updated = it
                items.append(it)
            self.line_items = items
            return updated

    # -------------------------
    # AI generation
    # -------------------------
    def generate_with_ai(self, generator: LineItemGenerator) -> bool:
        """Replace the line items with AI drafted ones.

        Returns False when the result, or the failure, was discarded because
        the draft was reset while the request was in flight.
        """
        with self._lock:
            prompt = self.ai_prompt.strip()
            if not prompt:
                raise ValidationError("Describe what this document is for first.")
            if self.is_loading:
                raise GenerationInProgress("Line items are already being generated.")
            self.is_loading = True
            self._generation += 1
            token = self._generation
            doc_type = self.doc_type

        try:
            drafts = generator.generate(doc_type, prompt)
        except Exception:
            with self._lock:
                if token != self._generation:
                    log.warning("AI request failed for a draft that was reset; ignoring", exc_info=True)
                    return False
                self.is_loading = False
            raise

        with self._lock:
            if token != self._generation:
                log.info("Discarding AI result for a draft that was reset")
                return False
            self.is_loading = False
            self.line_items = [
                LineItem(description=d.description, quantity=d.quantity, unit_price=d.unit_price)
                for d in drafts
            ]
            return True

    # -------------------------
    # Save / reset
    # -------------------------
    def reset(self) -> None:
        with self._lock:
            self._generation += 1
            self.is_loading = False
            self._clear()

    def save(self, customers: CustomerManager, documents: PersistentState[List[Document]]) -> Document:
        with self._lock:
            if not self.customer_id or not self.line_items:
                raise ValidationError("Please select a customer and add at least one line item.")
            if customers.get(self.customer_id) is None:
                raise ValidationError("The selected customer does not exist.")
            ids = [it.id for it in self.line_items]
            if len(set(ids)) != len(ids):
                raise ValidationError("Line item identifiers must be unique.")

            doc = Document(
                customer_id=self.customer_id,
                type=self.doc_type,
                date=now_iso(),
                line_items=[it.model_copy() for it in self.line_items],
            )
            documents.set(lambda prev: [*prev, doc])
            log.info("Saved %s %s for customer %s", doc.type.value, doc.id, doc.customer_id)
            self.reset()
            return doc
