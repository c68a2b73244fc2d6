"""Persisted selection of the top-level view."""
from exam_tracker.store import ACTIVE_TAB_KEY, PersistentStore

SYLLABUS_TAB = "syllabus"
TODO_TAB = "todo"
TABS = (SYLLABUS_TAB, TODO_TAB)
DEFAULT_TAB = SYLLABUS_TAB


class TabState:
    """Active tab stored under ``activeTab``; unknown stored values fall back to the syllabus view."""

    def __init__(self, storage, key: str = ACTIVE_TAB_KEY):
        self.store: PersistentStore[str] = PersistentStore(key, DEFAULT_TAB, storage)

    @property
    def active(self) -> str:
        tab = self.store.get()
        return tab if tab in TABS else DEFAULT_TAB

    def select(self, tab: str) -> None:
        if tab not in TABS:
            raise ValueError(f"Unknown tab: {tab!r}")
        self.store.set(tab)
