import json
import logging
import uuid
from collections import Counter
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from db.database import get_db, transaction
from models.package import PackageAssign, PackageImport
from routes.children import get_owned_child
from utils.answers import validate_multiple_choice
from utils.auth import require_parent
from utils.cache import invalidate_assignments

logger = logging.getLogger(__name__)

router = APIRouter()


def validate_package(body: PackageImport) -> list[str]:
    """Collect every import problem up front so the parent can fix them in one pass."""
    errors = []
    for number, problem in enumerate(body.problems, start=1):
        if problem.answer_type == "multiple_choice":
            error = validate_multiple_choice(problem.correct_answer, problem.options or [])
            if error:
                errors.append(f"Problem {number}: {error}")
    return errors


def _difficulty_summary(body: PackageImport) -> dict:
    counts = Counter(problem.difficulty for problem in body.problems)
    return {level: counts.get(level, 0) for level in ("easy", "medium", "hard")}


def _get_visible_package(conn, parent_id: str, package_id: str):
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT * FROM packages
        WHERE id = ? AND is_active = 1 AND (parent_id = ? OR is_global = 1)
        """,
        (package_id, parent_id),
    )
    package = cursor.fetchone()
    if not package:
        raise HTTPException(status_code=404, detail="Package not found")
    return package


def _package_dict(row) -> dict:
    package = dict(row)
    package["difficulty_summary"] = json.loads(package["difficulty_summary"] or "{}")
    package["is_global"] = bool(package["is_global"])
    package["is_active"] = bool(package["is_active"])
    return package


@router.post("/import", status_code=status.HTTP_201_CREATED)
async def import_package(body: PackageImport, parent_id: str = Depends(require_parent), conn = Depends(get_db)):
    errors = validate_package(body)
    if errors:
        raise HTTPException(status_code=400, detail={"message": "Invalid package", "errors": errors})
    package_id = str(uuid.uuid4())
    with transaction(conn):
        conn.execute(
            """
            INSERT INTO packages
                (id, parent_id, name, grade_level, assignment_type, problem_count,
                 difficulty_summary, description, story_text, is_global)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                package_id,
                parent_id,
                body.name.strip(),
                body.grade_level,
                body.assignment_type,
                len(body.problems),
                json.dumps(_difficulty_summary(body)),
                body.description,
                body.story_text,
                int(body.is_global),
            ),
        )
        conn.executemany(
            """
            INSERT INTO package_problems
                (id, package_id, problem_number, question_text, correct_answer, answer_type,
                 options, explanation, hint, difficulty)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    str(uuid.uuid4()),
                    package_id,
                    number,
                    problem.question_text,
                    problem.correct_answer.strip().upper()
                    if problem.answer_type == "multiple_choice"
                    else problem.correct_answer,
                    problem.answer_type,
                    json.dumps(problem.options) if problem.options is not None else None,
                    problem.explanation,
                    problem.hint,
                    problem.difficulty,
                )
                for number, problem in enumerate(body.problems, start=1)
            ],
        )
    logger.info("Parent %s imported package %s (%s problems)", parent_id, package_id, len(body.problems))
    return {"id": package_id, "name": body.name.strip(), "problem_count": len(body.problems)}


@router.get("/")
async def list_packages(
    grade_level: Optional[int] = Query(None, ge=1, le=9),
    assignment_type: Optional[str] = Query(None, pattern="^(math|reading|english)$"),
    parent_id: str = Depends(require_parent),
    conn = Depends(get_db),
):
    """Own packages plus global ones that fit the grades of this parent's children."""
    filters = [
        "p.is_active = 1",
        """(
            p.parent_id = ?
            OR (p.is_global = 1 AND p.grade_level IN (
                SELECT grade_level FROM children WHERE parent_id = ? AND grade_level IS NOT NULL
            ))
        )""",
    ]
    params: list[object] = [parent_id, parent_id]
    if grade_level is not None:
        filters.append("p.grade_level = ?")
        params.append(grade_level)
    if assignment_type is not None:
        filters.append("p.assignment_type = ?")
        params.append(assignment_type)
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT p.*,
               (SELECT COUNT(*) FROM assignments a WHERE a.package_id = p.id AND a.parent_id = ?) AS times_assigned
        FROM packages p
        WHERE {" AND ".join(filters)}
        ORDER BY p.grade_level, p.name
        """,
        [parent_id, *params],
    )
    return [_package_dict(row) for row in cursor.fetchall()]


@router.get("/{package_id}")
async def get_package(package_id: str, parent_id: str = Depends(require_parent), conn = Depends(get_db)):
    package = _package_dict(_get_visible_package(conn, parent_id, package_id))
    cursor = conn.cursor()
    cursor.execute(
        "SELECT * FROM package_problems WHERE package_id = ? ORDER BY problem_number",
        (package_id,),
    )
    problems = []
    for row in cursor.fetchall():
        problem = dict(row)
        problem["options"] = json.loads(problem["options"]) if problem["options"] else None
        problems.append(problem)
    package["problems"] = problems
    return package


@router.post("/{package_id}/assign", status_code=status.HTTP_201_CREATED)
async def assign_package(
    package_id: str,
    body: PackageAssign,
    parent_id: str = Depends(require_parent),
    conn = Depends(get_db),
):
    package = _get_visible_package(conn, parent_id, package_id)
    get_owned_child(conn, parent_id, body.child_id)
    assignment_id = str(uuid.uuid4())
    title = (body.title or "").strip() or package["name"]
    conn.execute(
        """
        INSERT INTO assignments
            (id, parent_id, child_id, assignment_type, title, grade_level, hints_allowed, package_id)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            assignment_id,
            parent_id,
            body.child_id,
            package["assignment_type"],
            title,
            package["grade_level"],
            int(body.hints_allowed),
            package_id,
        ),
    )
    conn.commit()
    invalidate_assignments(parent_id=parent_id, child_id=body.child_id)
    logger.info("Assigned package %s to child %s as %s", package_id, body.child_id, assignment_id)
    return {"id": assignment_id, "title": title, "package_id": package_id, "status": "pending"}


@router.delete("/{package_id}")
async def delete_package(package_id: str, parent_id: str = Depends(require_parent), conn = Depends(get_db)):
    """Soft-delete a package; assignments built from it are removed, answers first."""
    cursor = conn.cursor()
    cursor.execute(
        "SELECT id FROM packages WHERE id = ? AND parent_id = ? AND is_active = 1",
        (package_id, parent_id),
    )
    if not cursor.fetchone():
        raise HTTPException(status_code=404, detail="Package not found")
    cursor.execute("SELECT DISTINCT parent_id, child_id FROM assignments WHERE package_id = ?", (package_id,))
    affected = [(row["parent_id"], row["child_id"]) for row in cursor.fetchall()]
    with transaction(conn):
        conn.execute(
            "DELETE FROM assignment_answers WHERE assignment_id IN (SELECT id FROM assignments WHERE package_id = ?)",
            (package_id,),
        )
        removed = conn.execute("DELETE FROM assignments WHERE package_id = ?", (package_id,)).rowcount
        conn.execute("UPDATE packages SET is_active = 0 WHERE id = ?", (package_id,))
    invalidate_assignments(parent_id=parent_id)
    for owner_id, child_id in affected:
        invalidate_assignments(parent_id=owner_id, child_id=child_id)
    logger.info("Package %s deactivated, %s assignments removed", package_id, removed)
    return {"deleted": package_id, "assignments_removed": removed}
