from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional

DEFAULT_ANSWER_TYPE = "number"
ANSWER_TYPES = ("number", "text", "multiple_choice")

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_answer(raw: Optional[str]) -> str:
    """Canonicalize a free-text answer so format variants compare equal.

    Trim, lowercase, drop all whitespace and parentheses, treat commas as
    decimal points and drop percent signs: "(5, 6)", "5,6" and "5.6" all
    become "5.6"; "50%" becomes "50".
    """
    if raw is None:
        return ""
    text = raw.strip().lower()
    text = _WHITESPACE_RE.sub("", text)
    text = text.replace("(", "").replace(")", "")
    text = text.replace(",", ".")
    return text.replace("%", "")


@dataclass(frozen=True)
class ParsedOptions:
    """Result of decoding a stored option list: either the list or why it is unusable."""

    options: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def ok(cls, options: List[str]) -> "ParsedOptions":
        return cls(options=list(options))

    @classmethod
    def malformed(cls, reason: str) -> "ParsedOptions":
        return cls(error=reason)

    @property
    def is_ok(self) -> bool:
        return self.error is None


def parse_options(raw: Any) -> ParsedOptions:
    if raw is None or raw == "":
        return ParsedOptions.malformed("no options")
    if isinstance(raw, list):
        parsed = raw
    else:
        try:
            parsed = json.loads(raw)
        except (TypeError, ValueError):
            return ParsedOptions.malformed("options are not valid JSON")
    if not isinstance(parsed, list):
        return ParsedOptions.malformed("options are not a list")
    return ParsedOptions.ok([str(item) for item in parsed])


def is_answerable(answer_type: Optional[str], options_raw: Any) -> bool:
    """Multiple choice needs at least two options; everything else can always be answered."""
    if answer_type != "multiple_choice":
        return True
    parsed = parse_options(options_raw)
    return parsed.is_ok and len(parsed.options) >= 2


def option_letters(options: List[str]) -> List[str]:
    return [option.strip()[:1].upper() for option in options if option.strip()]


def validate_multiple_choice(correct_answer: Optional[str], options: Any) -> Optional[str]:
    """Return an error message if a multiple-choice item cannot be imported, else None."""
    parsed = parse_options(options)
    if not parsed.is_ok or len(parsed.options) < 2:
        return "Question has no options configured"
    letters = option_letters(parsed.options)
    normalized = (correct_answer or "").strip().upper()
    if normalized not in letters:
        return (
            f'correct_answer "{correct_answer}" does not match any option '
            f"({', '.join(letters)})"
        )
    return None


@dataclass(frozen=True)
class Evaluation:
    correct: bool
    correct_answer: str


def evaluate_answer(answer_type: Optional[str], correct_answer: str, submitted: Optional[str]) -> Evaluation:
    answer_type = answer_type or DEFAULT_ANSWER_TYPE
    submitted = submitted or ""
    if answer_type == "multiple_choice":
        expected = (correct_answer or "").strip().upper()
        given = submitted.strip()[:1].upper()
        return Evaluation(correct=bool(given) and given == expected, correct_answer=expected)
    expected = normalize_answer(correct_answer)
    given = normalize_answer(submitted)
    return Evaluation(correct=bool(given) and given == expected, correct_answer=correct_answer)
