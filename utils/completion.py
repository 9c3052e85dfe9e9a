from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

from utils.questions import Question


class AssignmentStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


_ORDER = {
    AssignmentStatus.PENDING: 0,
    AssignmentStatus.IN_PROGRESS: 1,
    AssignmentStatus.COMPLETED: 2,
}


def answerable_questions(questions: Iterable[Question]) -> list[Question]:
    return [question for question in questions if question.answerable]


def completion_counts(questions: Iterable[Question]) -> tuple[int, int]:
    """Return (answered, required) over the answerable questions only."""
    required = answerable_questions(questions)
    answered_ids = {question.id for question in required if question.answered}
    return len(answered_ids), len(required)


def is_complete(questions: Iterable[Question]) -> bool:
    """An assignment is complete once every answerable question has an answer.

    Corrupted multiple-choice items are left out of both sides of the count,
    so they can neither block completion nor count as answered.
    """
    answered, required = completion_counts(questions)
    return answered >= required


def can_transition(current: AssignmentStatus, target: AssignmentStatus) -> bool:
    return _ORDER[AssignmentStatus(target)] > _ORDER[AssignmentStatus(current)]


def next_status(current: AssignmentStatus, complete: bool) -> AssignmentStatus:
    """Status after a submission: any submission starts the assignment, completion finishes it."""
    current = AssignmentStatus(current)
    if current == AssignmentStatus.COMPLETED:
        return current
    if complete:
        return AssignmentStatus.COMPLETED
    return AssignmentStatus.IN_PROGRESS


def apply_transition(conn, assignment_id: str, current: AssignmentStatus, target: AssignmentStatus) -> Optional[AssignmentStatus]:
    """Persist a forward status change; returns the new status or None if nothing changed.

    The UPDATE is guarded on the current status so a completion can only be
    recorded once even if two writers race.
    """
    current = AssignmentStatus(current)
    target = AssignmentStatus(target)
    if not can_transition(current, target):
        return None
    cursor = conn.cursor()
    if target == AssignmentStatus.COMPLETED:
        cursor.execute(
            """
            UPDATE assignments
            SET status = ?, completed_at = CURRENT_TIMESTAMP
            WHERE id = ? AND status = ?
            """,
            (target.value, assignment_id, current.value),
        )
    else:
        cursor.execute(
            "UPDATE assignments SET status = ? WHERE id = ? AND status = ?",
            (target.value, assignment_id, current.value),
        )
    return target if cursor.rowcount == 1 else None
