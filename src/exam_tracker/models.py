"""Data classes for the tracker domain model."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Topic:
    id: str
    name: str


@dataclass(frozen=True)
class Subject:
    id: str
    name: str
    topics: tuple[Topic, ...] = ()


@dataclass(frozen=True)
class Exam:
    id: str
    name: str
    subjects: tuple[Subject, ...] = ()

    @property
    def total_topics(self) -> int:
        return sum(len(s.topics) for s in self.subjects)


@dataclass(frozen=True)
class TodoItem:
    id: str
    text: str
    created_at: datetime
    completed: bool = False
    completed_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        """Durable form: camelCase keys, ISO-8601 timestamps, no completedAt when absent."""
        data = {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "createdAt": self.created_at.isoformat(),
        }
        if self.completed_at is not None:
            data["completedAt"] = self.completed_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "TodoItem":
        completed_at = data.get("completedAt")
        return cls(
            id=str(data["id"]),
            text=data["text"],
            completed=bool(data.get("completed", False)),
            created_at=parse_timestamp(data["createdAt"]),
            completed_at=parse_timestamp(completed_at) if completed_at else None,
        )


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z`` for UTC."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)
