# schemas.py
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field

from config import settings

QuizType = Literal["scored", "vibe"]

class GenerateIn(BaseModel):
    topic: str = Field(min_length=1, max_length=512)
    question_count: int = Field(default=5, ge=1, le=settings.MAX_QUESTIONS)
    difficulty: str = "medium"
    user_id: Optional[str] = None

class OptionOut(BaseModel):
    id: int
    text: str
    is_correct: bool

class QuestionOut(BaseModel):
    id: int
    question: str
    order_num: int
    options: List[OptionOut]

class QuizOut(BaseModel):
    id: int
    title: str
    topic: str
    difficulty: Optional[str]
    quiz_type: QuizType
    created_at: str
    questions: List[QuestionOut]

class HistoryRow(BaseModel):
    id: int
    title: str
    topic: str
    difficulty: Optional[str]
    quiz_type: QuizType
    created_at: str

class HistoryOut(BaseModel):
    items: list[HistoryRow]

class SubmissionIn(BaseModel):
    user_id: str = Field(min_length=1)
    answers: Dict[int, int] = {}

class SubmissionOut(BaseModel):
    id: int
    quiz_id: int
    score: int
    max_score: int
    percentage: int

class AnswerOut(BaseModel):
    question_id: int
    question: str
    selected_option: str

class AttemptOut(BaseModel):
    id: int
    quiz_id: int
    quiz_title: str
    quiz_type: QuizType
    score: int
    max_score: int
    percentage: int
    created_at: str
    answers: List[AnswerOut]

class AttemptsOut(BaseModel):
    items: list[AttemptOut]
