from pydantic import BaseModel, Field, field_validator
from typing import List, Literal, Optional

AnswerType = Literal["number", "text", "multiple_choice"]
Difficulty = Literal["easy", "medium", "hard"]
Subject = Literal["math", "reading", "english"]

class PackageProblemIn(BaseModel):
    question_text: str = Field(..., min_length=1)
    correct_answer: str
    answer_type: AnswerType = "number"
    options: Optional[List[str]] = None
    explanation: Optional[str] = None
    hint: Optional[str] = None
    difficulty: Difficulty = "medium"

    @field_validator("correct_answer")
    @classmethod
    def strip_answer(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("correct_answer cannot be empty")
        return v

class PackageImport(BaseModel):
    name: str = Field(..., min_length=1)
    grade_level: int = Field(..., ge=1, le=9)
    assignment_type: Subject = "math"
    description: Optional[str] = None
    story_text: Optional[str] = None
    is_global: bool = False
    problems: List[PackageProblemIn] = Field(..., min_length=1)

class PackageAssign(BaseModel):
    child_id: str
    title: Optional[str] = None
    hints_allowed: bool = True
