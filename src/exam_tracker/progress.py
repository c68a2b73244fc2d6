"""Syllabus progress tracking and completion percentages."""
from exam_tracker.catalog import find_exam
from exam_tracker.models import Exam, Subject
from exam_tracker.store import PROGRESS_KEY, PersistentStore

DEFAULT_EXAM_ID = "ssc"

# examId -> subjectId -> topicId -> completed
ProgressState = dict[str, dict[str, dict[str, bool]]]


def completion_percentage(done: int, total: int) -> int:
    """Integer percentage rounded half up; 0 when there is nothing to complete."""
    if total <= 0:
        return 0
    return (200 * done + total) // (2 * total)


def lookup_topic(progress: ProgressState, exam_id: str, subject_id: str, topic_id: str) -> bool:
    """Three-level lookup where a missing level at any depth means not completed."""
    exam = progress.get(exam_id) if isinstance(progress, dict) else None
    if not isinstance(exam, dict):
        return False
    subject = exam.get(subject_id)
    if not isinstance(subject, dict):
        return False
    return subject.get(topic_id) is True


def _decode_progress(raw) -> ProgressState:
    """Accept only exam -> subject -> topic -> bool; anything else is rejected."""
    if not isinstance(raw, dict):
        raise ValueError(f"expected an object, got {type(raw).__name__}")
    for exam_id, subjects in raw.items():
        if not isinstance(subjects, dict):
            raise ValueError(f"progress for exam {exam_id!r} is not an object")
        for subject_id, topics in subjects.items():
            if not isinstance(topics, dict):
                raise ValueError(f"progress for {exam_id!r}/{subject_id!r} is not an object")
            for topic_id, done in topics.items():
                if not isinstance(done, bool):
                    raise ValueError(f"progress for {exam_id!r}/{subject_id!r}/{topic_id!r} is not a boolean")
    return raw


def progress_store(storage, key: str = PROGRESS_KEY) -> PersistentStore[ProgressState]:
    return PersistentStore(key, {}, storage, decode=_decode_progress)


class ProgressTracker:
    """Completion state of catalog topics, kept in a persistent store.

    The currently selected exam is transient and only affects
    ``subject_completion_percentage``.
    """

    def __init__(self, store: PersistentStore[ProgressState], catalog: tuple[Exam, ...],
                 current_exam: str = DEFAULT_EXAM_ID):
        self.store = store
        self.catalog = catalog
        self.current_exam = current_exam

    @property
    def current(self) -> Exam:
        return find_exam(self.catalog, self.current_exam)

    def select_exam(self, exam_id: str) -> Exam:
        exam = find_exam(self.catalog, exam_id)
        self.current_exam = exam.id
        return exam

    def is_topic_completed(self, exam_id: str, subject_id: str, topic_id: str) -> bool:
        return lookup_topic(self.store.get(), exam_id, subject_id, topic_id)

    def toggle_topic(self, exam_id: str, subject_id: str, topic_id: str) -> bool:
        """Flip one topic and commit. Returns the topic's new state.

        Only the mappings on the toggled path are copied, so snapshots
        previously returned by ``store.get()`` are left untouched.
        """
        old = self.store.get()
        exam = dict(old.get(exam_id) or {})
        subject = dict(exam.get(subject_id) or {})
        subject[topic_id] = not lookup_topic(old, exam_id, subject_id, topic_id)
        exam[subject_id] = subject
        new = {**old, exam_id: exam}
        self.store.set(new)
        return subject[topic_id]

    def reset_exam(self, exam_id: str) -> None:
        old = self.store.get()
        if exam_id not in old:
            return
        self.store.set({k: v for k, v in old.items() if k != exam_id})

    def completed_topic_count(self, subject: Subject, exam_id: str | None = None) -> int:
        exam_id = exam_id or self.current_exam
        return sum(1 for t in subject.topics if self.is_topic_completed(exam_id, subject.id, t.id))

    def subject_completion_percentage(self, subject: Subject) -> int:
        return completion_percentage(self.completed_topic_count(subject), len(subject.topics))

    def exam_completion_percentage(self, exam: Exam) -> int:
        done = sum(self.completed_topic_count(s, exam.id) for s in exam.subjects)
        return completion_percentage(done, exam.total_topics)
