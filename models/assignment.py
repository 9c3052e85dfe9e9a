from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from utils.completion import AssignmentStatus

class MathProblemIn(BaseModel):
    question_text: str = Field(..., min_length=1)
    correct_answer: str = Field(..., min_length=1)
    answer_type: Literal["number", "text", "multiple_choice"] = "number"
    options: Optional[List[str]] = None
    explanation: Optional[str] = None
    hint: Optional[str] = None
    difficulty: Literal["easy", "medium", "hard"] = "medium"

class ReadingQuestionIn(BaseModel):
    question_text: str = Field(..., min_length=1)
    correct_answer: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=2)
    difficulty: Literal["easy", "medium", "hard"] = "medium"

class AssignmentCreate(BaseModel):
    child_id: str
    assignment_type: Literal["math", "reading"]
    title: str = Field(..., min_length=1)
    grade_level: Optional[int] = Field(None, ge=1, le=9)
    hints_allowed: bool = True
    problems: List[MathProblemIn] = Field(default_factory=list)
    questions: List[ReadingQuestionIn] = Field(default_factory=list)

class AnswerSubmit(BaseModel):
    question_id: str
    answer: str

class HintRequest(BaseModel):
    question_id: str

class ReorderRequest(BaseModel):
    assignment_ids: List[str] = Field(..., min_length=1)

class SubmitResult(BaseModel):
    is_correct: bool
    correct_answer: Optional[str] = None
    coins_earned: int
    completion_bonus: int = 0
    new_balance: int
    new_streak: int
    attempt_number: int
    max_attempts: int
    can_retry: bool
    potential_reward: int = 0
    can_buy_hint: bool = False
    hint_cost: Optional[int] = None
    explanation: Optional[str] = None
    assignment_completed: bool
    status: AssignmentStatus
