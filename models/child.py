from pydantic import BaseModel, Field
from typing import Optional

class ChildBase(BaseModel):
    name: str = Field(..., min_length=1)
    birthdate: Optional[str] = None  # ISO date
    grade_level: Optional[int] = Field(None, ge=1, le=9)

class ChildCreate(ChildBase):
    pin: str = Field(..., min_length=4, max_length=8)

class ChildUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    birthdate: Optional[str] = None
    grade_level: Optional[int] = Field(None, ge=1, le=9)
    pin: Optional[str] = Field(None, min_length=4, max_length=8)

class Child(ChildBase):
    id: str
    parent_id: str
    coins: int = 0
    total_earned: int = 0
    current_streak: int = 0

    class Config:
        from_attributes = True
