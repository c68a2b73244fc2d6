import pytest

from exam_tracker.models import Exam, Subject, Topic
from exam_tracker.storage import MemoryStorage


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_tracker.db")
    return db_path


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def catalog():
    """A small two-exam catalog; 'ssc' has 4 + 2 topics, 'empty' has none."""
    return (
        Exam(id="ssc", name="SSC CGL", subjects=(
            Subject(id="quant", name="Quant", topics=(
                Topic(id="t1", name="Number System"),
                Topic(id="t2", name="Percentage"),
                Topic(id="t3", name="Algebra"),
                Topic(id="t4", name="Geometry"),
            )),
            Subject(id="english", name="English", topics=(
                Topic(id="rc", name="Reading Comprehension"),
                Topic(id="grammar", name="Grammar"),
            )),
        )),
        Exam(id="empty", name="Empty Exam", subjects=(
            Subject(id="nothing", name="Nothing"),
        )),
    )
