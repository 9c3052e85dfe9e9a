"""Answer submission and hint purchase for a child's assignment.

Each call runs inside one SQLite write transaction: the status transition,
the answer write, the wallet update, the completion check and the audit log
rows either all commit or none do.
"""
from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from config import load_config
from db.database import transaction
from utils.completion import AssignmentStatus, apply_transition, is_complete, next_status
from utils.questions import (
    SOURCE_LEGACY_MATH,
    SOURCE_LEGACY_READING,
    SOURCE_PACKAGE,
    Question,
    load_question,
    load_questions,
)
from utils.rewards import hint_cost, potential_reward, reward, reward_rules

logger = logging.getLogger(__name__)


class NotFoundError(LookupError):
    pass


class SubmissionRejected(ValueError):
    pass


@dataclass
class SubmissionResult:
    is_correct: bool
    correct_answer: Optional[str]
    coins_earned: int
    completion_bonus: int
    new_balance: int
    new_streak: int
    attempt_number: int
    max_attempts: int
    can_retry: bool
    potential_reward: int
    can_buy_hint: bool
    hint_cost: Optional[int]
    explanation: Optional[str]
    assignment_completed: bool
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class HintPurchase:
    hint: str
    cost: int
    new_balance: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def max_attempts_for(question: Question, rules: Dict[str, int]) -> int:
    if question.source == SOURCE_LEGACY_READING:
        return 1
    return max(1, rules["max_attempts"])


def is_finished(question: Question, max_attempts: int) -> bool:
    """No more attempts: already right, or out of tries."""
    return bool(question.is_correct) or question.attempts_count >= max_attempts


def _load_assignment(conn, child_id: str, assignment_id: str):
    cursor = conn.cursor()
    cursor.execute(
        "SELECT * FROM assignments WHERE id = ? AND child_id = ?",
        (assignment_id, child_id),
    )
    assignment = cursor.fetchone()
    if not assignment:
        raise NotFoundError("Assignment not found")
    return assignment


def _load_wallet(conn, child_id: str):
    cursor = conn.cursor()
    cursor.execute(
        "INSERT OR IGNORE INTO child_coins (child_id, balance, total_earned, current_streak) VALUES (?, 0, 0, 0)",
        (child_id,),
    )
    cursor.execute(
        "SELECT balance, total_earned, current_streak FROM child_coins WHERE child_id = ?",
        (child_id,),
    )
    return cursor.fetchone()


def _log_progress(conn, child_id: str, assignment_id: str, action: str, details: Dict[str, Any], coins: int = 0) -> None:
    conn.execute(
        """
        INSERT INTO progress_logs (child_id, assignment_id, action, details, coins_earned)
        VALUES (?, ?, ?, ?, ?)
        """,
        (child_id, assignment_id, action, json.dumps(details), coins),
    )


def _record_answer(conn, assignment, question: Question, answer: str, correct: bool, attempt_number: int) -> None:
    if question.source == SOURCE_PACKAGE:
        # One row per (assignment, problem); later attempts overwrite it
        conn.execute(
            """
            INSERT INTO assignment_answers
                (id, assignment_id, problem_id, child_answer, is_correct, answered_at, attempts_count)
            VALUES (?, ?, ?, ?, ?, CURRENT_TIMESTAMP, ?)
            ON CONFLICT (assignment_id, problem_id) DO UPDATE SET
                child_answer = excluded.child_answer,
                is_correct = excluded.is_correct,
                answered_at = excluded.answered_at,
                attempts_count = excluded.attempts_count
            """,
            (str(uuid.uuid4()), assignment["id"], question.id, answer, int(correct), attempt_number),
        )
    elif question.source == SOURCE_LEGACY_MATH:
        conn.execute(
            """
            UPDATE math_problems
            SET child_answer = ?, is_correct = ?, answered_at = CURRENT_TIMESTAMP, attempts_count = ?
            WHERE id = ? AND assignment_id = ?
            """,
            (answer, int(correct), attempt_number, question.id, assignment["id"]),
        )
    else:
        conn.execute(
            """
            UPDATE reading_questions
            SET child_answer = ?, is_correct = ?, answered_at = CURRENT_TIMESTAMP
            WHERE id = ? AND assignment_id = ?
            """,
            (answer, int(correct), question.id, assignment["id"]),
        )


def submit_answer(
    conn,
    child_id: str,
    assignment_id: str,
    question_id: str,
    answer: str,
    config: Optional[Dict[str, Any]] = None,
) -> SubmissionResult:
    rules = reward_rules(config if config is not None else load_config())
    answer = (answer or "").strip()
    if not answer:
        raise SubmissionRejected("Answer cannot be empty")

    with transaction(conn):
        assignment = _load_assignment(conn, child_id, assignment_id)
        question = load_question(conn, assignment, question_id)
        if question is None:
            raise NotFoundError("Question not found")
        if not question.answerable:
            raise SubmissionRejected("Question has no options configured")
        max_attempts = max_attempts_for(question, rules)
        if is_finished(question, max_attempts):
            raise SubmissionRejected("Question already completed")
        attempt_number = question.attempts_count + 1

        status = AssignmentStatus(assignment["status"])
        if status == AssignmentStatus.PENDING:
            if apply_transition(conn, assignment_id, status, AssignmentStatus.IN_PROGRESS):
                _log_progress(conn, child_id, assignment_id, "started", {"question_id": question_id})
            status = AssignmentStatus.IN_PROGRESS

        evaluation = question.evaluate(answer)
        wallet = _load_wallet(conn, child_id)
        earned = reward(evaluation.correct, wallet["current_streak"], attempt_number, rules)
        _record_answer(conn, assignment, question, answer, evaluation.correct, attempt_number)
        _log_progress(
            conn,
            child_id,
            assignment_id,
            "answered",
            {
                "question_id": question_id,
                "answer": answer,
                "is_correct": evaluation.correct,
                "attempt": attempt_number,
            },
            earned.coins_earned,
        )

        bonus = 0
        target = next_status(status, is_complete(load_questions(conn, assignment)))
        if target != status and apply_transition(conn, assignment_id, status, target):
            status = target
            if target == AssignmentStatus.COMPLETED:
                bonus = rules["completion_bonus"]
                _log_progress(conn, child_id, assignment_id, "completed", {"bonus": bonus}, bonus)
                logger.info("Assignment %s completed by child %s", assignment_id, child_id)

        total = earned.coins_earned + bonus
        conn.execute(
            """
            UPDATE child_coins
            SET balance = balance + ?, total_earned = total_earned + ?, current_streak = ?
            WHERE child_id = ?
            """,
            (total, total, earned.new_streak, child_id),
        )
        new_balance = wallet["balance"] + total

    can_retry = not evaluation.correct and attempt_number < max_attempts
    finished = not can_retry
    can_buy_hint = (
        can_retry
        and bool(assignment["hints_allowed"])
        and bool(question.hint)
        and not question.hint_purchased
    )
    next_potential = potential_reward(attempt_number + 1, rules) if can_retry else 0
    logger.info(
        "Child %s answered %s (attempt %s): correct=%s coins=%s bonus=%s",
        child_id,
        question_id,
        attempt_number,
        evaluation.correct,
        earned.coins_earned,
        bonus,
    )
    return SubmissionResult(
        is_correct=evaluation.correct,
        correct_answer=evaluation.correct_answer if finished else None,
        coins_earned=earned.coins_earned,
        completion_bonus=bonus,
        new_balance=new_balance,
        new_streak=earned.new_streak,
        attempt_number=attempt_number,
        max_attempts=max_attempts,
        can_retry=can_retry,
        potential_reward=next_potential,
        can_buy_hint=can_buy_hint,
        hint_cost=hint_cost(next_potential) if can_buy_hint else None,
        explanation=question.explanation if finished else None,
        assignment_completed=status == AssignmentStatus.COMPLETED,
        status=status.value,
    )


def purchase_hint(
    conn,
    child_id: str,
    assignment_id: str,
    question_id: str,
    config: Optional[Dict[str, Any]] = None,
) -> HintPurchase:
    rules = reward_rules(config if config is not None else load_config())
    with transaction(conn):
        assignment = _load_assignment(conn, child_id, assignment_id)
        if not assignment["hints_allowed"]:
            raise SubmissionRejected("Hints are not allowed for this assignment")
        question = load_question(conn, assignment, question_id)
        if question is None:
            raise NotFoundError("Question not found")
        if question.source == SOURCE_LEGACY_READING or not question.hint:
            raise SubmissionRejected("No hint available for this question")
        if question.hint_purchased:
            raise SubmissionRejected("Hint already purchased")
        if is_finished(question, max_attempts_for(question, rules)):
            raise SubmissionRejected("Question already completed")
        if question.attempts_count < 1:
            raise SubmissionRejected("Hints unlock after a wrong attempt")

        cost = hint_cost(potential_reward(question.attempts_count + 1, rules))
        wallet = _load_wallet(conn, child_id)
        if wallet["balance"] < cost:
            raise SubmissionRejected("Not enough coins")

        conn.execute(
            "UPDATE child_coins SET balance = balance - ? WHERE child_id = ?",
            (cost, child_id),
        )
        if question.source == SOURCE_PACKAGE:
            conn.execute(
                """
                UPDATE assignment_answers
                SET hint_purchased = 1, coins_spent_on_hint = ?
                WHERE assignment_id = ? AND problem_id = ?
                """,
                (cost, assignment_id, question_id),
            )
        else:
            conn.execute(
                "UPDATE math_problems SET hint_purchased = 1 WHERE id = ? AND assignment_id = ?",
                (question_id, assignment_id),
            )
        _log_progress(conn, child_id, assignment_id, "hint", {"question_id": question_id, "cost": cost}, -cost)

    logger.info("Child %s bought hint for %s for %s coins", child_id, question_id, cost)
    return HintPurchase(hint=question.hint, cost=cost, new_balance=wallet["balance"] - cost)
