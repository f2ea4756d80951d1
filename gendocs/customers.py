from typing import List, Optional

from .errors import ValidationError
from .logging import get_logger
from .models import UNKNOWN_CUSTOMER, Customer
from .storage import CUSTOMERS_KEY, KeyValueStore, PersistentState

log = get_logger("customers")


class CustomerManager:
    """Append-only customer list persisted under the ``customers`` key."""

    def __init__(self, store: KeyValueStore):
        self.state: PersistentState[List[Customer]] = PersistentState(
            store, CUSTOMERS_KEY, List[Customer], []
        )

    def list(self) -> List[Customer]:
        return list(self.state.value)

    def get(self, customer_id: str) -> Optional[Customer]:
        for c in self.state.value:
            if c.id == customer_id:
                return c
        return None

    def resolve(self, customer_id: str) -> Customer:
        return self.get(customer_id) or UNKNOWN_CUSTOMER

    def add_customer(self, name: str, email: str, address: str = "") -> Customer:
        name = (name or "").strip()
        email = (email or "").strip()
        if not name or not email:
            raise ValidationError("Customer name and email are required.")

        customer = Customer(name=name, email=email, address=(address or "").strip())
        self.state.set(lambda prev: [*prev, customer])
        log.info("Added customer %s (%s)", customer.id, customer.name)
        return customer
