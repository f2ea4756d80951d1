from typing import List

from .ai import LineItemGenerator
from .creator import DocumentCreator
from .customers import CustomerManager
from .dashboard import Dashboard, build_dashboard
from .logging import get_logger
from .models import Document
from .storage import DOCUMENTS_KEY, KeyValueStore, PersistentState

log = get_logger("shell")

VIEWS = ("dashboard", "customers", "creator")
DEFAULT_VIEW = "dashboard"


class AppState:
    """Everything the views share: both collections, the draft and the active view.

    Built once by the app factory and handed to the routes; collections are
    loaded from the store here and written back on every mutation.
    """

    def __init__(self, store: KeyValueStore, generator: LineItemGenerator):
        self.store = store
        self.generator = generator
        self.customers = CustomerManager(store)
        self.documents: PersistentState[List[Document]] = PersistentState(
            store, DOCUMENTS_KEY, List[Document], []
        )
        self.creator = DocumentCreator()
        self.active_view = DEFAULT_VIEW
        log.info(
            "Loaded %d customer(s) and %d document(s)",
            len(self.customers.list()),
            len(self.documents.value),
        )

    def navigate(self, view: str) -> str:
        self.active_view = view if view in VIEWS else DEFAULT_VIEW
        if self.active_view == "creator":
            self.creator.select_default_customer(self.customers.list())
        return self.active_view

    def dashboard(self) -> Dashboard:
        return build_dashboard(self.customers.list(), self.documents.value)

    def generate_line_items(self) -> bool:
        return self.creator.generate_with_ai(self.generator)

    def save_document(self) -> Document:
        doc = self.creator.save(self.customers, self.documents)
        self.navigate("dashboard")
        return doc
