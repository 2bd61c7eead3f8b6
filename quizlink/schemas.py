from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, field_validator, Field

from quizlink.utils import normalize_answer

# Ids are INTEGER columns; larger values cannot name a row
MAX_ID = 2**31 - 1


class QuestionIn(BaseModel):
    """A question as authored by the instructor, answer key included"""
    text: str = Field(..., min_length=1, description="Question text shown to students")
    answer: str = Field(..., description="Correct answer, stored trimmed and lowercased")
    score: int = Field(..., ge=1, description="Points awarded for a correct answer")

    @field_validator('answer')
    def normalize(cls, value):
        value = normalize_answer(value)
        if not value:
            raise ValueError("answer must not be empty")
        return value


class TestCreate(BaseModel):
    title: str = Field(..., min_length=1)
    questions: List[QuestionIn] = Field(..., min_length=1)

    @field_validator('title')
    def title_not_blank(cls, value):
        if not value.strip():
            raise ValueError("title must not be empty")
        return value


class TestCreated(BaseModel):
    test_id: int
    link: str


# Student-facing shapes. There is deliberately no `answer` field here.
class PublicQuestion(BaseModel):
    text: str
    score: int


class TestPublic(BaseModel):
    """Test as served to the quiz page"""
    title: str
    questions: List[PublicQuestion]

    model_config = ConfigDict(from_attributes=True)


class ResultCreate(BaseModel):
    test_id: int = Field(..., ge=1, le=MAX_ID)
    student_name: str = Field(..., min_length=1)
    student_group: str = Field(..., min_length=1)
    # Zero is a real score: presence is checked with `is None`, never truthiness
    score: Optional[int] = Field(default=None, ge=0)
    answers: Optional[List[Optional[str]]] = Field(
        default=None,
        description="Raw answers in question order; when given the server grades them"
    )

    @field_validator('student_name', 'student_group')
    def not_blank(cls, value):
        if not value.strip():
            raise ValueError("must not be empty")
        return value


class ResultSaved(BaseModel):
    message: str
    score: int


class ResultOut(BaseModel):
    student_name: str
    student_group: str
    score: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GroupSummary(BaseModel):
    student_group: str
    submissions: int
    average_score: float
    best_score: int

    model_config = ConfigDict(from_attributes=True)
