"""Correct/incorrect statistics for a child.

Answers live in two places: package-based assignments write rows to
``assignment_answers``, while legacy assignments keep the answer on the
embedded ``math_problems`` / ``reading_questions`` rows. Each query here
reads one of those shapes; the ``combined_*`` helpers merge both so callers
see a single timeline per subject.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

SUBJECTS = ("math", "reading")
DATA_SOURCES = ("package", "legacy")
PERIOD_DAYS = {"7d": 7, "30d": 30, "all": None}

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class StatsResult:
    correct: int = 0
    incorrect: int = 0

    def __add__(self, other: "StatsResult") -> "StatsResult":
        return StatsResult(self.correct + other.correct, self.incorrect + other.incorrect)

    @property
    def total(self) -> int:
        return self.correct + self.incorrect

    def to_dict(self) -> Dict[str, int]:
        return {"correct": self.correct, "incorrect": self.incorrect}


@dataclass
class DateStats:
    date: str
    correct: int = 0
    incorrect: int = 0

    def to_dict(self) -> Dict[str, object]:
        return {"date": self.date, "correct": self.correct, "incorrect": self.incorrect}


@dataclass
class ChildStats:
    math: StatsResult = field(default_factory=StatsResult)
    reading: StatsResult = field(default_factory=StatsResult)

    def to_dict(self) -> Dict[str, Dict[str, int]]:
        return {"math": self.math.to_dict(), "reading": self.reading.to_dict()}


@dataclass
class ChildStatsByDate:
    math: List[DateStats] = field(default_factory=list)
    reading: List[DateStats] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[Dict[str, object]]]:
        return {
            "math": [row.to_dict() for row in self.math],
            "reading": [row.to_dict() for row in self.reading],
        }


def _check(subject: str, data_source: str) -> None:
    if subject not in SUBJECTS:
        raise ValueError(f"Unknown subject: {subject}")
    if data_source not in DATA_SOURCES:
        raise ValueError(f"Unknown data source: {data_source}")


def window_start(period: str, now: Optional[datetime] = None) -> Optional[str]:
    """Lower bound (inclusive) of a rolling window as a stored-timestamp string."""
    if period not in PERIOD_DAYS:
        raise ValueError(f"Unknown period: {period}")
    days = PERIOD_DAYS[period]
    if days is None:
        return None
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)
    return (now - timedelta(days=days)).strftime(TIMESTAMP_FORMAT)


def build_date_filter(period: str, alias: str, now: Optional[datetime] = None) -> Tuple[str, list]:
    start = window_start(period, now)
    if start is None:
        return "", []
    return f"AND {alias}.answered_at >= ?", [start]


def _table_config(subject: str, data_source: str) -> Tuple[str, str]:
    if data_source == "package":
        return "assignment_answers", "aa"
    if subject == "math":
        return "math_problems", "mp"
    return "reading_questions", "rq"


def _base_query(subject: str, data_source: str, period: str, now: Optional[datetime]) -> Tuple[str, str, list]:
    table, alias = _table_config(subject, data_source)
    package_condition = (
        "AND a.package_id IS NOT NULL" if data_source == "package" else "AND a.package_id IS NULL"
    )
    date_clause, date_params = build_date_filter(period, alias, now)
    from_clause = f"""
        FROM assignments a
        JOIN {table} {alias} ON a.id = {alias}.assignment_id
        WHERE a.child_id = ?
          AND a.assignment_type = ?
          {package_condition}
          {date_clause}
    """
    return alias, from_clause, date_params


def aggregate(
    conn,
    child_id: str,
    subject: str,
    data_source: str,
    period: str = "all",
    now: Optional[datetime] = None,
) -> StatsResult:
    _check(subject, data_source)
    alias, from_clause, date_params = _base_query(subject, data_source, period, now)
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT
            COALESCE(SUM(CASE WHEN {alias}.is_correct = 1 THEN 1 ELSE 0 END), 0) AS correct,
            COALESCE(SUM(CASE WHEN {alias}.is_correct = 0 THEN 1 ELSE 0 END), 0) AS incorrect
        {from_clause}
        """,
        [child_id, subject, *date_params],
    )
    row = cursor.fetchone()
    if not row:
        return StatsResult()
    return StatsResult(correct=int(row["correct"] or 0), incorrect=int(row["incorrect"] or 0))


def aggregate_by_date(
    conn,
    child_id: str,
    subject: str,
    data_source: str,
    period: str = "all",
    now: Optional[datetime] = None,
) -> List[DateStats]:
    """Per local calendar date; dates without answers are left out."""
    _check(subject, data_source)
    alias, from_clause, date_params = _base_query(subject, data_source, period, now)
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT
            date({alias}.answered_at, 'localtime') AS day,
            SUM(CASE WHEN {alias}.is_correct = 1 THEN 1 ELSE 0 END) AS correct,
            SUM(CASE WHEN {alias}.is_correct = 0 THEN 1 ELSE 0 END) AS incorrect
        {from_clause}
          AND {alias}.answered_at IS NOT NULL
          AND {alias}.is_correct IS NOT NULL
        GROUP BY day
        ORDER BY day
        """,
        [child_id, subject, *date_params],
    )
    return [
        DateStats(date=row["day"], correct=int(row["correct"] or 0), incorrect=int(row["incorrect"] or 0))
        for row in cursor.fetchall()
    ]


def merge_date_stats(*groups: List[DateStats]) -> List[DateStats]:
    by_date: Dict[str, DateStats] = {}
    for group in groups:
        for row in group:
            bucket = by_date.setdefault(row.date, DateStats(date=row.date))
            bucket.correct += row.correct
            bucket.incorrect += row.incorrect
    return [by_date[day] for day in sorted(by_date)]


def combined_stats(conn, child_id: str, period: str = "all", now: Optional[datetime] = None) -> ChildStats:
    totals = {}
    for subject in SUBJECTS:
        totals[subject] = aggregate(conn, child_id, subject, "package", period, now) + aggregate(
            conn, child_id, subject, "legacy", period, now
        )
    return ChildStats(math=totals["math"], reading=totals["reading"])


def combined_stats_by_date(
    conn, child_id: str, period: str = "all", now: Optional[datetime] = None
) -> ChildStatsByDate:
    merged = {}
    for subject in SUBJECTS:
        merged[subject] = merge_date_stats(
            aggregate_by_date(conn, child_id, subject, "package", period, now),
            aggregate_by_date(conn, child_id, subject, "legacy", period, now),
        )
    return ChildStatsByDate(math=merged["math"], reading=merged["reading"])
