"""Load the static syllabus catalog shipped with the package."""
import json
from pathlib import Path

from exam_tracker.models import Exam, Subject, Topic

CONTENT_DIR = Path(__file__).parent / "content"
DEFAULT_CATALOG_PATH = CONTENT_DIR / "syllabuses.json"


def parse_catalog(data: dict) -> tuple[Exam, ...]:
    """Build Exam records from the ``{"exams": [...]}`` structure."""
    return tuple(
        Exam(
            id=exam["id"],
            name=exam["name"],
            subjects=tuple(
                Subject(
                    id=subject["id"],
                    name=subject["name"],
                    topics=tuple(Topic(id=t["id"], name=t["name"]) for t in subject["topics"]),
                )
                for subject in exam["subjects"]
            ),
        )
        for exam in data["exams"]
    )


def load_catalog(path: Path | str | None = None) -> tuple[Exam, ...]:
    """Read the catalog JSON file (the packaged one by default)."""
    path = Path(path) if path else DEFAULT_CATALOG_PATH
    return parse_catalog(json.loads(path.read_text(encoding="utf-8")))


def find_exam(catalog: tuple[Exam, ...], exam_id: str) -> Exam:
    for exam in catalog:
        if exam.id == exam_id:
            return exam
    raise KeyError(exam_id)
