import pytest

from conftest import insert_assignment, insert_child, insert_parent
from utils.completion import (
    AssignmentStatus,
    apply_transition,
    can_transition,
    completion_counts,
    is_complete,
    next_status,
)
from utils.questions import SOURCE_PACKAGE, Question


def _question(qid, answer=None, answer_type="number", options=None):
    return Question(
        id=qid,
        source=SOURCE_PACKAGE,
        number=1,
        prompt="?",
        correct_answer="1",
        answer_type=answer_type,
        options=options,
        child_answer=answer,
    )


def test_complete_once_every_answerable_question_has_an_answer():
    questions = [_question("a", "1"), _question("b", "wrong")]
    assert is_complete(questions)
    assert not is_complete([_question("a", "1"), _question("b")])


def test_corrupted_multiple_choice_never_blocks_or_counts():
    broken = _question("c", answer="A", answer_type="multiple_choice", options='["A: only"]')
    questions = [_question("a", "1"), broken]
    assert completion_counts(questions) == (1, 1)
    assert is_complete(questions)


def test_assignment_of_only_corrupted_questions_is_trivially_complete():
    broken = _question("c", answer_type="multiple_choice", options="not json")
    assert completion_counts([broken]) == (0, 0)
    assert is_complete([broken])


def test_status_machine_only_moves_forward():
    assert can_transition(AssignmentStatus.PENDING, AssignmentStatus.IN_PROGRESS)
    assert can_transition(AssignmentStatus.IN_PROGRESS, AssignmentStatus.COMPLETED)
    assert not can_transition(AssignmentStatus.COMPLETED, AssignmentStatus.IN_PROGRESS)
    assert not can_transition(AssignmentStatus.IN_PROGRESS, AssignmentStatus.IN_PROGRESS)
    assert next_status(AssignmentStatus.PENDING, False) == AssignmentStatus.IN_PROGRESS
    assert next_status(AssignmentStatus.IN_PROGRESS, True) == AssignmentStatus.COMPLETED
    assert next_status(AssignmentStatus.COMPLETED, False) == AssignmentStatus.COMPLETED


@pytest.mark.parametrize("status", ["pending", "in_progress"])
def test_apply_transition_records_completion_once(conn, status):
    parent_id = insert_parent(conn)
    child_id = insert_child(conn, parent_id)
    assignment_id = insert_assignment(conn, parent_id, child_id)
    conn.execute("UPDATE assignments SET status = ? WHERE id = ?", (status, assignment_id))

    assert apply_transition(conn, assignment_id, status, "completed") == AssignmentStatus.COMPLETED
    assert apply_transition(conn, assignment_id, status, "completed") is None
    row = conn.execute("SELECT status, completed_at FROM assignments WHERE id = ?", (assignment_id,)).fetchone()
    assert row["status"] == "completed"
    assert row["completed_at"] is not None
