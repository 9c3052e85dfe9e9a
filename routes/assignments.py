import json
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from config import load_config
from db.database import get_db, transaction
from models.assignment import AnswerSubmit, AssignmentCreate, HintRequest, ReorderRequest, SubmitResult
from routes.children import get_owned_child
from utils.answers import validate_multiple_choice
from utils.auth import Session, require_any_session, require_child, require_parent
from utils.cache import assignments_list_key, cache_get, cache_set, invalidate_assignments
from utils.completion import completion_counts
from utils.questions import load_questions
from utils.rewards import reward_rules
from utils.submission import (
    NotFoundError,
    SubmissionRejected,
    is_finished,
    max_attempts_for,
    purchase_hint,
    submit_answer,
)

logger = logging.getLogger(__name__)

router = APIRouter()

STATUS_PATTERN = "^(pending|in_progress|completed)$"


def _summary(conn, assignment) -> dict:
    questions = load_questions(conn, assignment)
    answered, required = completion_counts(questions)
    summary = dict(assignment)
    summary["hints_allowed"] = bool(summary["hints_allowed"])
    summary.update(
        {
            "answered_count": answered,
            "required_count": required,
            "correct_count": sum(1 for question in questions if question.is_correct),
            "total_count": len(questions),
        }
    )
    return summary


def _load_for_session(conn, session: Session, assignment_id: str):
    owner_column = "parent_id" if session.role == "parent" else "child_id"
    cursor = conn.cursor()
    cursor.execute(
        f"SELECT * FROM assignments WHERE id = ? AND {owner_column} = ?",
        (assignment_id, session.user_id),
    )
    assignment = cursor.fetchone()
    if not assignment:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return assignment


@router.get("/")
async def list_assignments(
    child_id: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status", pattern=STATUS_PATTERN),
    session: Session = Depends(require_any_session),
    conn = Depends(get_db),
):
    if session.role == "child":
        child_id = session.user_id
    key = assignments_list_key(session.role, session.user_id, child_id, status_filter)
    cached = cache_get(key)
    if cached is not None:
        return cached

    owner_column = "a.parent_id" if session.role == "parent" else "a.child_id"
    filters = [f"{owner_column} = ?"]
    params: list[object] = [session.user_id]
    if child_id:
        filters.append("a.child_id = ?")
        params.append(child_id)
    if status_filter:
        filters.append("a.status = ?")
        params.append(status_filter)
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT a.*, c.name AS child_name
        FROM assignments a
        JOIN children c ON c.id = a.child_id
        WHERE {" AND ".join(filters)}
        ORDER BY COALESCE(a.display_order, 2147483647), a.created_at DESC
        """,
        params,
    )
    assignments = [_summary(conn, row) for row in cursor.fetchall()]
    cache_set(key, assignments)
    return assignments


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_assignment(body: AssignmentCreate, parent_id: str = Depends(require_parent), conn = Depends(get_db)):
    """Create an assignment with its own embedded questions (not backed by a package)."""
    child = get_owned_child(conn, parent_id, body.child_id)
    items = body.problems if body.assignment_type == "math" else body.questions
    if not items:
        raise HTTPException(status_code=400, detail="Assignment needs at least one question")
    errors = []
    for number, item in enumerate(items, start=1):
        answer_type = getattr(item, "answer_type", "multiple_choice")
        if answer_type == "multiple_choice":
            error = validate_multiple_choice(item.correct_answer, item.options or [])
            if error:
                errors.append(f"Question {number}: {error}")
    if errors:
        raise HTTPException(status_code=400, detail={"message": "Invalid assignment", "errors": errors})

    assignment_id = str(uuid.uuid4())
    with transaction(conn):
        conn.execute(
            """
            INSERT INTO assignments (id, parent_id, child_id, assignment_type, title, grade_level, hints_allowed)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                assignment_id,
                parent_id,
                body.child_id,
                body.assignment_type,
                body.title.strip(),
                body.grade_level or child["grade_level"],
                int(body.hints_allowed),
            ),
        )
        if body.assignment_type == "math":
            conn.executemany(
                """
                INSERT INTO math_problems
                    (id, assignment_id, problem_number, question_text, correct_answer, answer_type,
                     options, explanation, hint, difficulty)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        str(uuid.uuid4()),
                        assignment_id,
                        number,
                        problem.question_text,
                        problem.correct_answer,
                        problem.answer_type,
                        json.dumps(problem.options) if problem.options is not None else None,
                        problem.explanation,
                        problem.hint,
                        problem.difficulty,
                    )
                    for number, problem in enumerate(body.problems, start=1)
                ],
            )
        else:
            conn.executemany(
                """
                INSERT INTO reading_questions
                    (id, assignment_id, question_number, question_text, correct_answer, options, difficulty)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        str(uuid.uuid4()),
                        assignment_id,
                        number,
                        question.question_text,
                        question.correct_answer.strip().upper(),
                        json.dumps(question.options),
                        question.difficulty,
                    )
                    for number, question in enumerate(body.questions, start=1)
                ],
            )
    invalidate_assignments(parent_id=parent_id, child_id=body.child_id)
    logger.info("Parent %s created %s assignment %s", parent_id, body.assignment_type, assignment_id)
    return {"id": assignment_id, "title": body.title.strip(), "status": "pending"}


@router.put("/reorder")
async def reorder_assignments(body: ReorderRequest, parent_id: str = Depends(require_parent), conn = Depends(get_db)):
    cursor = conn.cursor()
    placeholders = ",".join("?" for _ in body.assignment_ids)
    cursor.execute(
        f"SELECT id, child_id FROM assignments WHERE parent_id = ? AND id IN ({placeholders})",
        (parent_id, *body.assignment_ids),
    )
    owned = {row["id"]: row["child_id"] for row in cursor.fetchall()}
    missing = [assignment_id for assignment_id in body.assignment_ids if assignment_id not in owned]
    if missing:
        raise HTTPException(status_code=404, detail=f"Assignment not found: {missing[0]}")
    with transaction(conn):
        conn.executemany(
            "UPDATE assignments SET display_order = ? WHERE id = ?",
            [(position, assignment_id) for position, assignment_id in enumerate(body.assignment_ids)],
        )
    invalidate_assignments(parent_id=parent_id)
    for child_id in set(owned.values()):
        invalidate_assignments(child_id=child_id)
    return {"ok": True}


@router.get("/{assignment_id}")
async def get_assignment(
    assignment_id: str,
    session: Session = Depends(require_any_session),
    conn = Depends(get_db),
):
    assignment = _load_for_session(conn, session, assignment_id)
    rules = reward_rules(load_config())
    detail = _summary(conn, assignment)
    questions = []
    for question in load_questions(conn, assignment):
        item = question.to_dict()
        max_attempts = max_attempts_for(question, rules)
        item["max_attempts"] = max_attempts
        reveal = session.role == "parent" or is_finished(question, max_attempts)
        item["correct_answer"] = question.correct_answer if reveal else None
        item["explanation"] = question.explanation if reveal else None
        if session.role == "parent":
            item["hint"] = question.hint
        questions.append(item)
    detail["questions"] = questions
    return detail


@router.post("/{assignment_id}/submit", response_model=SubmitResult)
async def submit(
    assignment_id: str,
    body: AnswerSubmit,
    child_id: str = Depends(require_child),
    conn = Depends(get_db),
):
    try:
        result = submit_answer(conn, child_id, assignment_id, body.question_id, body.answer)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except SubmissionRejected as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    cursor = conn.cursor()
    cursor.execute("SELECT parent_id FROM assignments WHERE id = ?", (assignment_id,))
    row = cursor.fetchone()
    invalidate_assignments(parent_id=row["parent_id"] if row else None, child_id=child_id)
    return result.to_dict()


@router.post("/{assignment_id}/hint")
async def buy_hint(
    assignment_id: str,
    body: HintRequest,
    child_id: str = Depends(require_child),
    conn = Depends(get_db),
):
    try:
        purchase = purchase_hint(conn, child_id, assignment_id, body.question_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except SubmissionRejected as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return purchase.to_dict()


@router.delete("/{assignment_id}")
async def delete_assignment(assignment_id: str, parent_id: str = Depends(require_parent), conn = Depends(get_db)):
    cursor = conn.cursor()
    cursor.execute(
        "SELECT id, child_id FROM assignments WHERE id = ? AND parent_id = ?",
        (assignment_id, parent_id),
    )
    row = cursor.fetchone()
    if not row:
        raise HTTPException(status_code=404, detail="Assignment not found")
    with transaction(conn):
        conn.execute("DELETE FROM assignment_answers WHERE assignment_id = ?", (assignment_id,))
        conn.execute("DELETE FROM assignments WHERE id = ?", (assignment_id,))
    invalidate_assignments(parent_id=parent_id, child_id=row["child_id"])
    logger.info("Parent %s deleted assignment %s", parent_id, assignment_id)
    return {"deleted": assignment_id}
