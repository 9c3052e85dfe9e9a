import fnmatch
import json
import sys
import uuid
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import config  # noqa: E402
from db import database  # noqa: E402
from main import app  # noqa: E402
from utils import cache  # noqa: E402
from utils.auth import SESSION_COOKIE_NAME, create_session_cookie, hash_secret  # noqa: E402

TEST_CONFIG = "\n".join(
    [
        "[rewards]",
        "base_coins = 10",
        "streak_step = 5",
        "streak_cap = 25",
        "completion_bonus = 50",
        "max_attempts = 3",
        "",
        "[cache]",
        "enabled = false",
        'url = "redis://localhost:6379/15"',
        "ttl_seconds = 60",
        "",
        "[auth]",
        'session_secret = "test-secret"',
        "session_minutes = 60",
        "",
        "[logging]",
        'level = "DEBUG"',
    ]
)

ENV_OVERRIDES = (
    "CACHE_ENABLED",
    "REDIS_URL",
    "CACHE_TTL_SECONDS",
    "SESSION_SECRET",
    "SESSION_MINUTES",
    "LOG_LEVEL",
    "REWARD_BASE_COINS",
    "REWARD_STREAK_STEP",
    "REWARD_STREAK_CAP",
    "REWARD_COMPLETION_BONUS",
    "REWARD_MAX_ATTEMPTS",
)


class FakeRedis:
    """Just enough of redis.Redis for the read-through cache."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed

    def scan_iter(self, match="*"):
        return [key for key in list(self.store) if fnmatch.fnmatch(key, match)]


@pytest.fixture
def app_env(tmp_path, monkeypatch):
    config_dir = tmp_path / ".homeschool"
    config_dir.mkdir()
    config_path = config_dir / "config.toml"
    config_path.write_text(TEST_CONFIG, encoding="utf-8")

    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_path)
    monkeypatch.setattr(database, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(database, "DB_PATH", config_dir / "homeschool.db")
    monkeypatch.setattr(config, "load_dotenv", lambda *args, **kwargs: False)
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)

    cache.set_client(None)
    database.init_db()
    yield config_dir
    cache.set_client(None)


@pytest.fixture
def fake_redis(app_env, monkeypatch):
    monkeypatch.setenv("CACHE_ENABLED", "true")
    client = FakeRedis()
    cache.set_client(client)
    return client


@pytest.fixture
def conn(app_env):
    with database.get_conn() as connection:
        yield connection


def insert_parent(conn, name="Pat", email=None, family_code="FAM123"):
    parent_id = str(uuid.uuid4())
    conn.execute(
        "INSERT INTO parents (id, email, password_hash, name, family_code) VALUES (?, ?, ?, ?, ?)",
        (parent_id, email or f"{parent_id}@example.com", hash_secret("password123"), name, family_code),
    )
    conn.commit()
    return parent_id


def insert_child(conn, parent_id, name="Ada", grade_level=3, pin="1234"):
    child_id = str(uuid.uuid4())
    conn.execute(
        "INSERT INTO children (id, parent_id, name, grade_level, pin_hash) VALUES (?, ?, ?, ?, ?)",
        (child_id, parent_id, name, grade_level, hash_secret(pin)),
    )
    conn.execute(
        "INSERT INTO child_coins (child_id, balance, total_earned, current_streak) VALUES (?, 0, 0, 0)",
        (child_id,),
    )
    conn.commit()
    return child_id


def insert_package(conn, parent_id, problems, assignment_type="math", grade_level=3, is_global=False):
    """problems: dicts with correct_answer and optional answer_type/options/hint/explanation."""
    package_id = str(uuid.uuid4())
    conn.execute(
        """
        INSERT INTO packages (id, parent_id, name, grade_level, assignment_type, problem_count, is_global)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (package_id, parent_id, "Test package", grade_level, assignment_type, len(problems), int(is_global)),
    )
    problem_ids = []
    for number, problem in enumerate(problems, start=1):
        problem_id = str(uuid.uuid4())
        options = problem.get("options")
        conn.execute(
            """
            INSERT INTO package_problems
                (id, package_id, problem_number, question_text, correct_answer, answer_type,
                 options, explanation, hint)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                problem_id,
                package_id,
                number,
                problem.get("question_text", f"Question {number}"),
                problem["correct_answer"],
                problem.get("answer_type", "number"),
                options if options is None or isinstance(options, str) else json.dumps(options),
                problem.get("explanation"),
                problem.get("hint"),
            ),
        )
        problem_ids.append(problem_id)
    conn.commit()
    return package_id, problem_ids


def insert_assignment(conn, parent_id, child_id, package_id=None, assignment_type="math", hints_allowed=True):
    assignment_id = str(uuid.uuid4())
    conn.execute(
        """
        INSERT INTO assignments (id, parent_id, child_id, assignment_type, title, package_id, hints_allowed)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (assignment_id, parent_id, child_id, assignment_type, "Homework", package_id, int(hints_allowed)),
    )
    conn.commit()
    return assignment_id


def insert_math_problems(conn, assignment_id, problems):
    ids = []
    for number, problem in enumerate(problems, start=1):
        problem_id = str(uuid.uuid4())
        conn.execute(
            """
            INSERT INTO math_problems
                (id, assignment_id, problem_number, question_text, correct_answer, answer_type, options, hint, explanation)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                problem_id,
                assignment_id,
                number,
                problem.get("question_text", f"Problem {number}"),
                problem["correct_answer"],
                problem.get("answer_type", "number"),
                json.dumps(problem["options"]) if problem.get("options") is not None else None,
                problem.get("hint"),
                problem.get("explanation"),
            ),
        )
        ids.append(problem_id)
    conn.commit()
    return ids


def insert_reading_questions(conn, assignment_id, questions):
    ids = []
    for number, question in enumerate(questions, start=1):
        question_id = str(uuid.uuid4())
        options = question.get("options")
        conn.execute(
            """
            INSERT INTO reading_questions (id, assignment_id, question_number, question_text, correct_answer, options)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                question_id,
                assignment_id,
                number,
                question.get("question_text", f"Question {number}"),
                question["correct_answer"],
                options if options is None or isinstance(options, str) else json.dumps(options),
            ),
        )
        ids.append(question_id)
    conn.commit()
    return ids


def client_for(role, user_id):
    client = TestClient(app)
    client.cookies.set(SESSION_COOKIE_NAME, create_session_cookie(role, user_id))
    return client


@pytest.fixture
def family(conn):
    parent_id = insert_parent(conn)
    child_id = insert_child(conn, parent_id)
    return {
        "parent_id": parent_id,
        "child_id": child_id,
        "parent": client_for("parent", parent_id),
        "child": client_for("child", child_id),
    }
