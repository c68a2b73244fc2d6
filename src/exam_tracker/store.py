"""Persistent reactive store: one durable key bound to one in-memory value."""
import copy
import dataclasses
import json
from datetime import datetime
from typing import Any, Callable, Generic, TypeVar

import structlog

from exam_tracker.storage import DurableReadError, DurableWriteError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

PROGRESS_KEY = "syllabusProgress"
TODOS_KEY = "todos"
ACTIVE_TAB_KEY = "activeTab"


class DeserializationError(ValueError):
    """Stored text does not parse into the expected structure."""


def _default(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def encode_value(value: Any) -> str:
    """Encode a value as JSON text. Datetimes become ISO-8601 strings."""
    return json.dumps(value, default=_default)


def decode_text(text: str) -> Any:
    """Parse JSON text back into plain structures."""
    try:
        return json.loads(text)
    except (TypeError, ValueError, RecursionError) as e:
        raise DeserializationError(str(e)) from e


class PersistentStore(Generic[T]):
    """In-memory value kept in sync with one key of a durable storage.

    The stored value is read once at construction. After that the in-memory
    value is authoritative: ``set`` updates it, attempts the durable write,
    then notifies listeners. A failed write is logged where it happens and
    the in-memory value is kept.

    ``decode`` converts the parsed JSON structure into ``T``; any exception it
    raises makes the store fall back to ``default``.
    """

    def __init__(
        self,
        key: str,
        default: T,
        storage,
        decode: Callable[[Any], T] | None = None,
    ):
        self.key = key
        self.storage = storage
        self._default = default
        self._decode = decode
        self._listeners: list[Callable[[T], None]] = []
        self._value: T = self._load()

    def _load(self) -> T:
        try:
            text = self.storage.read(self.key)
        except DurableReadError as e:
            logger.warning("store.read_failed", key=self.key, error=str(e))
            return copy.deepcopy(self._default)
        if text is None:
            return copy.deepcopy(self._default)
        try:
            raw = decode_text(text)
            if self._decode is None:
                return raw
            try:
                return self._decode(raw)
            except Exception as e:
                raise DeserializationError(str(e)) from e
        except DeserializationError as e:
            logger.warning("store.decode_failed", key=self.key, error=str(e))
            return copy.deepcopy(self._default)

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> bool:
        """Replace the value, persist it, then notify listeners.

        Returns whether the durable write succeeded.
        """
        self._value = value
        try:
            self._commit(value)
            written = True
        except DurableWriteError:
            written = False
        for listener in list(self._listeners):
            listener(value)
        return written

    def update(self, fn: Callable[[T], T]) -> bool:
        return self.set(fn(self._value))

    def subscribe(self, listener: Callable[[T], None]) -> Callable[[], None]:
        """Register ``listener`` for every future ``set``. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, value: T) -> None:
        try:
            text = encode_value(value)
        except (TypeError, ValueError) as e:
            logger.warning("store.encode_failed", key=self.key, error=str(e))
            raise DurableWriteError(f"could not encode value: {e}") from e
        if not self.storage.write(self.key, text):
            raise DurableWriteError(f"storage rejected write of {self.key!r}")
