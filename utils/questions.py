from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from utils.answers import Evaluation, evaluate_answer, is_answerable

SOURCE_PACKAGE = "package"
SOURCE_LEGACY_MATH = "legacy_math"
SOURCE_LEGACY_READING = "legacy_reading"


@dataclass(frozen=True)
class Question:
    id: str
    source: str
    number: int
    prompt: str
    correct_answer: str
    answer_type: str
    options: Optional[str] = None
    explanation: Optional[str] = None
    hint: Optional[str] = None
    difficulty: Optional[str] = None
    child_answer: Optional[str] = None
    is_correct: Optional[bool] = None
    answered_at: Optional[str] = None
    attempts_count: int = 0
    hint_purchased: bool = False

    @property
    def answerable(self) -> bool:
        return is_answerable(self.answer_type, self.options)

    @property
    def answered(self) -> bool:
        return self.child_answer is not None

    def evaluate(self, submitted: str) -> Evaluation:
        return evaluate_answer(self.answer_type, self.correct_answer, submitted)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "number": self.number,
            "question_text": self.prompt,
            "answer_type": self.answer_type,
            "options": self.options,
            "difficulty": self.difficulty,
            "hint_available": bool(self.hint),
            "hint": self.hint if self.hint_purchased else None,
            "child_answer": self.child_answer,
            "is_correct": self.is_correct,
            "answered_at": self.answered_at,
            "attempts_count": self.attempts_count,
            "hint_purchased": self.hint_purchased,
            "answerable": self.answerable,
        }


def _flag(value: Any) -> Optional[bool]:
    if value is None:
        return None
    return bool(value)


def _row_get(row: Mapping[str, Any], key: str, default: Any = None) -> Any:
    return row[key] if key in row.keys() else default


def _from_package_row(row: Mapping[str, Any]) -> Question:
    return Question(
        id=row["id"],
        source=SOURCE_PACKAGE,
        number=row["problem_number"],
        prompt=row["question_text"],
        correct_answer=row["correct_answer"],
        answer_type=row["answer_type"] or "number",
        options=row["options"],
        explanation=row["explanation"],
        hint=row["hint"],
        difficulty=row["difficulty"],
        child_answer=_row_get(row, "child_answer"),
        is_correct=_flag(_row_get(row, "is_correct")),
        answered_at=_row_get(row, "answered_at"),
        attempts_count=_row_get(row, "attempts_count") or 0,
        hint_purchased=bool(_row_get(row, "hint_purchased")),
    )


def _from_math_row(row: Mapping[str, Any]) -> Question:
    return Question(
        id=row["id"],
        source=SOURCE_LEGACY_MATH,
        number=row["problem_number"],
        prompt=row["question_text"],
        correct_answer=row["correct_answer"],
        answer_type=row["answer_type"] or "number",
        options=row["options"],
        explanation=row["explanation"],
        hint=row["hint"],
        difficulty=row["difficulty"],
        child_answer=row["child_answer"],
        is_correct=_flag(row["is_correct"]),
        answered_at=row["answered_at"],
        attempts_count=row["attempts_count"] or 0,
        hint_purchased=bool(row["hint_purchased"]),
    )


def _from_reading_row(row: Mapping[str, Any]) -> Question:
    # Reading questions are always multiple choice and never carry hints
    return Question(
        id=row["id"],
        source=SOURCE_LEGACY_READING,
        number=row["question_number"],
        prompt=row["question_text"],
        correct_answer=row["correct_answer"],
        answer_type="multiple_choice",
        options=row["options"],
        difficulty=row["difficulty"],
        child_answer=row["child_answer"],
        is_correct=_flag(row["is_correct"]),
        answered_at=row["answered_at"],
        attempts_count=1 if row["child_answer"] is not None else 0,
    )


_PACKAGE_SQL = """
    SELECT pp.*, aa.child_answer, aa.is_correct, aa.answered_at,
           aa.attempts_count, aa.hint_purchased
    FROM package_problems pp
    LEFT JOIN assignment_answers aa ON aa.problem_id = pp.id AND aa.assignment_id = ?
    WHERE pp.package_id = ?
"""

_ADAPTERS: Dict[str, Callable[[Mapping[str, Any]], Question]] = {
    SOURCE_PACKAGE: _from_package_row,
    SOURCE_LEGACY_MATH: _from_math_row,
    SOURCE_LEGACY_READING: _from_reading_row,
}


def source_for_assignment(assignment: Mapping[str, Any]) -> str:
    if assignment["package_id"]:
        return SOURCE_PACKAGE
    if assignment["assignment_type"] == "reading":
        return SOURCE_LEGACY_READING
    return SOURCE_LEGACY_MATH


def _query(assignment: Mapping[str, Any], question_id: Optional[str]) -> tuple[str, list]:
    source = source_for_assignment(assignment)
    if source == SOURCE_PACKAGE:
        sql = _PACKAGE_SQL
        params: list = [assignment["id"], assignment["package_id"]]
        if question_id is not None:
            sql += " AND pp.id = ?"
            params.append(question_id)
        return sql + " ORDER BY pp.problem_number", params
    if source == SOURCE_LEGACY_READING:
        table, order = "reading_questions", "question_number"
    else:
        table, order = "math_problems", "problem_number"
    sql = f"SELECT * FROM {table} WHERE assignment_id = ?"
    params = [assignment["id"]]
    if question_id is not None:
        sql += " AND id = ?"
        params.append(question_id)
    return sql + f" ORDER BY {order}", params


def load_questions(conn, assignment: Mapping[str, Any]) -> List[Question]:
    """Load every question of an assignment, whichever table it lives in."""
    adapter = _ADAPTERS[source_for_assignment(assignment)]
    sql, params = _query(assignment, None)
    cursor = conn.cursor()
    cursor.execute(sql, params)
    return [adapter(row) for row in cursor.fetchall()]


def load_question(conn, assignment: Mapping[str, Any], question_id: str) -> Optional[Question]:
    adapter = _ADAPTERS[source_for_assignment(assignment)]
    sql, params = _query(assignment, question_id)
    cursor = conn.cursor()
    cursor.execute(sql, params)
    row = cursor.fetchone()
    return adapter(row) if row else None
