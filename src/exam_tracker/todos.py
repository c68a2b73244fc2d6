"""Personal todo list kept in a persistent store."""
import dataclasses
import uuid
from datetime import datetime
from typing import Callable

from exam_tracker.models import TodoItem
from exam_tracker.progress import completion_percentage
from exam_tracker.store import TODOS_KEY, PersistentStore


def _decode_todos(raw) -> list[TodoItem]:
    if not isinstance(raw, list):
        raise ValueError(f"expected a list, got {type(raw).__name__}")
    return [TodoItem.from_dict(item) for item in raw]


def todo_store(storage, key: str = TODOS_KEY) -> PersistentStore[list[TodoItem]]:
    return PersistentStore(key, [], storage, decode=_decode_todos)


def _new_id() -> str:
    return uuid.uuid4().hex


class TodoManager:
    """Create, toggle and delete todos. Newest items come first."""

    def __init__(self, store: PersistentStore[list[TodoItem]],
                 clock: Callable[[], datetime] | None = None,
                 id_factory: Callable[[], str] | None = None):
        self.store = store
        self.clock = clock or datetime.now
        self.id_factory = id_factory or _new_id

    @property
    def todos(self) -> list[TodoItem]:
        return self.store.get()

    @property
    def active_todos(self) -> list[TodoItem]:
        return [t for t in self.todos if not t.completed]

    @property
    def completed_todos(self) -> list[TodoItem]:
        return [t for t in self.todos if t.completed]

    @property
    def completion_rate(self) -> int:
        return completion_percentage(len(self.completed_todos), len(self.todos))

    def get(self, todo_id: str) -> TodoItem | None:
        return next((t for t in self.todos if t.id == todo_id), None)

    def add_todo(self, text: str) -> TodoItem | None:
        text = text.strip()
        if not text:
            return None
        todo = TodoItem(id=self.id_factory(), text=text, created_at=self.clock())
        self.store.set([todo, *self.todos])
        return todo

    def toggle_todo(self, todo_id: str) -> TodoItem | None:
        current = self.get(todo_id)
        if current is None:
            return None
        completed = not current.completed
        updated = dataclasses.replace(
            current,
            completed=completed,
            completed_at=self.clock() if completed else None,
        )
        self.store.set([updated if t.id == todo_id else t for t in self.todos])
        return updated

    def delete_todo(self, todo_id: str) -> bool:
        if self.get(todo_id) is None:
            return False
        self.store.set([t for t in self.todos if t.id != todo_id])
        return True

    def clear_completed(self) -> int:
        """Remove every completed item. Returns how many were removed."""
        removed = len(self.completed_todos)
        if removed:
            self.store.set(self.active_todos)
        return removed
