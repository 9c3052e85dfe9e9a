import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status

from db.database import get_db
from models.child import Child, ChildCreate, ChildUpdate
from utils.auth import Session, hash_secret, require_any_session, require_parent
from utils.cache import cache_invalidate, family_children_key, invalidate_assignments
from utils.completion import completion_counts
from utils.questions import load_questions
from utils.stats import SUBJECTS, combined_stats, combined_stats_by_date

logger = logging.getLogger(__name__)

router = APIRouter()

PERIOD_PATTERN = "^(7d|30d|all)$"


def get_owned_child(conn, parent_id: str, child_id: str):
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT c.id, c.parent_id, c.name, c.birthdate, c.grade_level,
               COALESCE(w.balance, 0) AS coins,
               COALESCE(w.total_earned, 0) AS total_earned,
               COALESCE(w.current_streak, 0) AS current_streak
        FROM children c
        LEFT JOIN child_coins w ON w.child_id = c.id
        WHERE c.id = ? AND c.parent_id = ?
        """,
        (child_id, parent_id),
    )
    row = cursor.fetchone()
    if not row:
        raise HTTPException(status_code=404, detail="Child not found")
    return row


def list_children(conn, parent_id: str) -> list[dict]:
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT c.id, c.parent_id, c.name, c.birthdate, c.grade_level,
               COALESCE(w.balance, 0) AS coins,
               COALESCE(w.total_earned, 0) AS total_earned,
               COALESCE(w.current_streak, 0) AS current_streak
        FROM children c
        LEFT JOIN child_coins w ON w.child_id = c.id
        WHERE c.parent_id = ?
        ORDER BY c.name
        """,
        (parent_id,),
    )
    return [dict(row) for row in cursor.fetchall()]


def _invalidate_family(conn, parent_id: str) -> None:
    cursor = conn.cursor()
    cursor.execute("SELECT family_code FROM parents WHERE id = ?", (parent_id,))
    row = cursor.fetchone()
    if row and row["family_code"]:
        cache_invalidate(family_children_key(row["family_code"]))


@router.get("/", response_model=list[Child])
async def get_children(parent_id: str = Depends(require_parent), conn = Depends(get_db)):
    return list_children(conn, parent_id)


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_child(body: ChildCreate, parent_id: str = Depends(require_parent), conn = Depends(get_db)):
    try:
        pin_hash = hash_secret(body.pin)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    child_id = str(uuid.uuid4())
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO children (id, parent_id, name, birthdate, grade_level, pin_hash)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (child_id, parent_id, body.name.strip(), body.birthdate, body.grade_level, pin_hash),
    )
    cursor.execute(
        "INSERT INTO child_coins (child_id, balance, total_earned, current_streak) VALUES (?, 0, 0, 0)",
        (child_id,),
    )
    conn.commit()
    _invalidate_family(conn, parent_id)
    logger.info("Parent %s added child %s", parent_id, child_id)
    return dict(get_owned_child(conn, parent_id, child_id))


@router.get("/stats")
async def children_stats(
    period: str = Query("all", pattern=PERIOD_PATTERN),
    parent_id: str = Depends(require_parent),
    conn = Depends(get_db),
):
    """Correct/incorrect totals per child and subject, package and legacy answers combined."""
    results = []
    for child in list_children(conn, parent_id):
        stats = combined_stats(conn, child["id"], period)
        results.append({"child_id": child["id"], "child_name": child["name"], **stats.to_dict()})
    return results


@router.get("/stats-by-date")
async def children_stats_by_date(
    period: str = Query("30d", pattern=PERIOD_PATTERN),
    parent_id: str = Depends(require_parent),
    conn = Depends(get_db),
):
    rows = []
    for child in list_children(conn, parent_id):
        by_date = combined_stats_by_date(conn, child["id"], period)
        for subject in SUBJECTS:
            for bucket in getattr(by_date, subject):
                rows.append(
                    {
                        "date": bucket.date,
                        "child_id": child["id"],
                        "child_name": child["name"],
                        "subject": subject,
                        "correct": bucket.correct,
                        "incorrect": bucket.incorrect,
                    }
                )
    rows.sort(key=lambda row: (row["child_name"], row["subject"]))
    rows.sort(key=lambda row: row["date"], reverse=True)
    return rows


@router.get("/{child_id}", response_model=Child)
async def get_child(child_id: str, parent_id: str = Depends(require_parent), conn = Depends(get_db)):
    return dict(get_owned_child(conn, parent_id, child_id))


@router.put("/{child_id}")
async def update_child(
    child_id: str,
    body: ChildUpdate,
    parent_id: str = Depends(require_parent),
    conn = Depends(get_db),
):
    get_owned_child(conn, parent_id, child_id)
    updates = body.model_dump(exclude_unset=True)
    if "pin" in updates:
        pin = updates.pop("pin")
        if pin is not None:
            try:
                updates["pin_hash"] = hash_secret(pin)
            except ValueError as exc:
                raise HTTPException(status_code=400, detail=str(exc))
    if "name" in updates and updates["name"] is not None:
        updates["name"] = updates["name"].strip()
    if updates:
        assignments = ", ".join(f"{column} = ?" for column in updates)
        conn.execute(
            f"UPDATE children SET {assignments} WHERE id = ? AND parent_id = ?",
            (*updates.values(), child_id, parent_id),
        )
        conn.commit()
        _invalidate_family(conn, parent_id)
        invalidate_assignments(parent_id=parent_id, child_id=child_id)
    return dict(get_owned_child(conn, parent_id, child_id))


@router.delete("/{child_id}")
async def delete_child(child_id: str, parent_id: str = Depends(require_parent), conn = Depends(get_db)):
    get_owned_child(conn, parent_id, child_id)
    cursor = conn.cursor()
    cursor.execute(
        "DELETE FROM assignment_answers WHERE assignment_id IN (SELECT id FROM assignments WHERE child_id = ?)",
        (child_id,),
    )
    cursor.execute("DELETE FROM children WHERE id = ?", (child_id,))
    conn.commit()
    _invalidate_family(conn, parent_id)
    invalidate_assignments(parent_id=parent_id, child_id=child_id)
    logger.info("Parent %s removed child %s", parent_id, child_id)
    return {"deleted": child_id}


@router.get("/{child_id}/progress")
async def child_progress(child_id: str, parent_id: str = Depends(require_parent), conn = Depends(get_db)):
    """Per-assignment completion and correctness, plus the recent activity log."""
    child = get_owned_child(conn, parent_id, child_id)
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT * FROM assignments
        WHERE child_id = ?
        ORDER BY COALESCE(display_order, 2147483647), created_at DESC
        """,
        (child_id,),
    )
    assignments = []
    for assignment in cursor.fetchall():
        questions = load_questions(conn, assignment)
        answered, required = completion_counts(questions)
        assignments.append(
            {
                "id": assignment["id"],
                "title": assignment["title"],
                "assignment_type": assignment["assignment_type"],
                "status": assignment["status"],
                "completed_at": assignment["completed_at"],
                "answered": answered,
                "required": required,
                "correct": sum(1 for question in questions if question.is_correct),
                "total": len(questions),
            }
        )
    cursor.execute(
        """
        SELECT action, assignment_id, details, coins_earned, created_at
        FROM progress_logs
        WHERE child_id = ?
        ORDER BY id DESC
        LIMIT 50
        """,
        (child_id,),
    )
    recent = [dict(row) for row in cursor.fetchall()]
    return {"child": dict(child), "assignments": assignments, "recent_activity": recent}


@router.get("/{child_id}/coins")
async def child_coins(child_id: str, session: Session = Depends(require_any_session), conn = Depends(get_db)):
    if session.role == "child":
        if session.user_id != child_id:
            raise HTTPException(status_code=403, detail="Not your wallet")
    else:
        get_owned_child(conn, session.user_id, child_id)
    cursor = conn.cursor()
    cursor.execute(
        "SELECT balance, total_earned, current_streak FROM child_coins WHERE child_id = ?",
        (child_id,),
    )
    row = cursor.fetchone()
    if not row:
        return {"balance": 0, "total_earned": 0, "current_streak": 0}
    return dict(row)
