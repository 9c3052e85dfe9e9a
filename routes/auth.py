import logging
import sqlite3
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from db.database import get_db
from models.auth import ChildLogin, ParentLogin, ParentRegister
from utils.auth import (
    SESSION_COOKIE_NAME,
    create_session_cookie,
    generate_family_code,
    get_session,
    get_session_minutes,
    hash_secret,
    verify_secret,
)
from utils.cache import cache_get, cache_set, family_children_key

logger = logging.getLogger(__name__)

router = APIRouter()


def _session_response(payload: dict, role: str, user_id: str) -> JSONResponse:
    duration = get_session_minutes()
    response = JSONResponse(payload)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        create_session_cookie(role, user_id, duration),
        max_age=duration * 60,
        httponly=True,
        samesite="lax",
    )
    return response


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register_parent(body: ParentRegister, conn = Depends(get_db)):
    email = body.email.strip().lower()
    parent_id = str(uuid.uuid4())
    cursor = conn.cursor()
    # Retry on the rare family code collision
    for _ in range(5):
        family_code = generate_family_code()
        try:
            cursor.execute(
                "INSERT INTO parents (id, email, password_hash, name, family_code) VALUES (?, ?, ?, ?, ?)",
                (parent_id, email, hash_secret(body.password), body.name.strip(), family_code),
            )
            conn.commit()
            break
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            if "email" in str(exc):
                raise HTTPException(status_code=400, detail="Email already registered")
    else:
        raise HTTPException(status_code=500, detail="Could not allocate a family code")
    logger.info("Registered parent %s", parent_id)
    response = _session_response(
        {"id": parent_id, "email": email, "name": body.name.strip(), "family_code": family_code},
        "parent",
        parent_id,
    )
    response.status_code = status.HTTP_201_CREATED
    return response


@router.post("/login")
async def login_parent(body: ParentLogin, conn = Depends(get_db)):
    cursor = conn.cursor()
    cursor.execute(
        "SELECT id, email, name, family_code, password_hash FROM parents WHERE email = ?",
        (body.email.strip().lower(),),
    )
    row = cursor.fetchone()
    if not row or not verify_secret(body.password, row["password_hash"]):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return _session_response(
        {"id": row["id"], "email": row["email"], "name": row["name"], "family_code": row["family_code"]},
        "parent",
        row["id"],
    )


@router.post("/child-login")
async def login_child(body: ChildLogin, conn = Depends(get_db)):
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT c.id, c.name, c.grade_level, c.pin_hash
        FROM children c
        JOIN parents p ON p.id = c.parent_id
        WHERE p.family_code = ? AND c.id = ?
        """,
        (body.family_code.strip().upper(), body.child_id),
    )
    row = cursor.fetchone()
    if not row or not verify_secret(body.pin, row["pin_hash"]):
        raise HTTPException(status_code=401, detail="Invalid PIN")
    return _session_response(
        {"id": row["id"], "name": row["name"], "grade_level": row["grade_level"]},
        "child",
        row["id"],
    )


@router.post("/logout")
async def logout():
    response = JSONResponse({"ok": True})
    response.delete_cookie(SESSION_COOKIE_NAME)
    return response


@router.get("/me")
async def whoami(request: Request):
    session = get_session(request)
    if session is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return {"role": session.role, "id": session.user_id}


@router.get("/children/{family_code}")
async def children_for_family(family_code: str, conn = Depends(get_db)):
    """Children picker for the child login screen, cached per family code."""
    key = family_children_key(family_code)
    cached = cache_get(key)
    if cached is not None:
        return cached
    cursor = conn.cursor()
    cursor.execute("SELECT id FROM parents WHERE family_code = ?", (family_code.strip().upper(),))
    parent = cursor.fetchone()
    if not parent:
        raise HTTPException(status_code=404, detail="Family not found")
    cursor.execute(
        "SELECT id, name, grade_level FROM children WHERE parent_id = ? ORDER BY name",
        (parent["id"],),
    )
    children = [dict(row) for row in cursor.fetchall()]
    cache_set(key, children)
    return children
