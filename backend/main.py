# main.py
import logging

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from config import settings
from db import Base, engine, get_session
from errors import LLMError
from llm import QuizGenerator, generate_quiz, get_generator
from log import setup_logging
import models, schemas
from utils import percentage, score_answers

setup_logging()
logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# App & CORS
# -----------------------------------------------------------------------------
app = FastAPI(title="AI Quiz Generator")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Create tables at startup
Base.metadata.create_all(bind=engine)

# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def save_quiz(db: Session, data: dict, topic: str, difficulty: str, user_id=None) -> models.Quiz:
    quiz_row = models.Quiz(
        title=data["title"],
        topic=topic,
        difficulty=difficulty,
        quiz_type="scored",
        user_id=user_id,
    )
    db.add(quiz_row)
    db.flush()

    for i, q in enumerate(data["questions"]):
        question_row = models.Question(quiz_id=quiz_row.id, question=q["question"], order_num=i)
        db.add(question_row)
        db.flush()
        for j, opt in enumerate(q["options"]):
            db.add(models.Option(
                question_id=question_row.id,
                option_text=str(opt.get("text") or ""),
                is_correct=opt.get("isCorrect") is True,
                order_num=j,
            ))

    db.commit()
    db.refresh(quiz_row)
    return quiz_row

def quiz_to_out(r: models.Quiz) -> dict:
    return {
        "id": r.id,
        "title": r.title,
        "topic": r.topic,
        "difficulty": r.difficulty,
        "quiz_type": r.quiz_type or "scored",
        "created_at": r.created_at.isoformat(),
        "questions": [
            {
                "id": q.id,
                "question": q.question,
                "order_num": q.order_num,
                "options": [
                    {"id": o.id, "text": o.option_text, "is_correct": o.is_correct}
                    for o in q.options
                ],
            } for q in r.questions
        ],
    }

def _get_quiz_or_404(db: Session, quiz_id: int) -> models.Quiz:
    r = db.query(models.Quiz).filter(models.Quiz.id == quiz_id).first()
    if not r:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return r

# -----------------------------------------------------------------------------
# Health
# -----------------------------------------------------------------------------
@app.get("/api/health")
def health():
    return {"status": "ok"}

# -----------------------------------------------------------------------------
# LLM smoke test (quick check that Gemini works)
# -----------------------------------------------------------------------------
@app.get("/api/llm-test")
def llm_test():
    from llm import ping_llm
    return ping_llm()

# -----------------------------------------------------------------------------
# Generate quiz (LLM + store + return)
# -----------------------------------------------------------------------------
@app.post("/api/generate", response_model=schemas.QuizOut)
def generate(payload: schemas.GenerateIn, generator: QuizGenerator = Depends(get_generator)):
    # 1) Call LLM, parse and repair the quiz
    try:
        data = generate_quiz(payload.topic, payload.question_count, payload.difficulty, generator=generator)
    except LLMError as e:
        logger.error("Quiz generation failed: %s", e)
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    # 2) Store and shape response JSON
    with get_session() as db:
        quiz_row = save_quiz(db, data, payload.topic, payload.difficulty, payload.user_id)
        logger.info("Stored quiz %s with %d questions", quiz_row.id, len(quiz_row.questions))
        return quiz_to_out(quiz_row)

# -----------------------------------------------------------------------------
# History list
# -----------------------------------------------------------------------------
@app.get("/api/quizzes", response_model=schemas.HistoryOut)
def list_quizzes():
    with get_session() as db:
        rows = db.query(models.Quiz).order_by(models.Quiz.created_at.desc(), models.Quiz.id.desc()).all()
        return {
            "items": [
                {
                    "id": r.id,
                    "title": r.title,
                    "topic": r.topic,
                    "difficulty": r.difficulty,
                    "quiz_type": r.quiz_type or "scored",
                    "created_at": r.created_at.isoformat(),
                }
                for r in rows
            ]
        }

# -----------------------------------------------------------------------------
# Get / delete quiz by id
# -----------------------------------------------------------------------------
@app.get("/api/quizzes/{quiz_id}", response_model=schemas.QuizOut)
def get_quiz(quiz_id: int):
    with get_session() as db:
        return quiz_to_out(_get_quiz_or_404(db, quiz_id))

@app.delete("/api/quizzes/{quiz_id}")
def delete_quiz(quiz_id: int):
    with get_session() as db:
        db.delete(_get_quiz_or_404(db, quiz_id))
        db.commit()
        return {"ok": True}

# -----------------------------------------------------------------------------
# Take a quiz: score and record a submission
# -----------------------------------------------------------------------------
@app.post("/api/quizzes/{quiz_id}/submissions", response_model=schemas.SubmissionOut)
def submit_quiz(quiz_id: int, payload: schemas.SubmissionIn):
    with get_session() as db:
        quiz_row = _get_quiz_or_404(db, quiz_id)
        try:
            score, max_score = score_answers(quiz_row.questions, payload.answers)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        submission = models.Submission(
            quiz_id=quiz_row.id,
            user_id=payload.user_id,
            score=score,
            max_score=max_score,
        )
        db.add(submission)
        db.flush()
        for question_id, option_id in payload.answers.items():
            db.add(models.UserAnswer(
                submission_id=submission.id,
                question_id=question_id,
                selected_option_id=option_id,
            ))
        db.commit()

        return {
            "id": submission.id,
            "quiz_id": quiz_row.id,
            "score": score,
            "max_score": max_score,
            "percentage": percentage(score, max_score),
        }

# -----------------------------------------------------------------------------
# Past attempts
# -----------------------------------------------------------------------------
@app.get("/api/attempts", response_model=schemas.AttemptsOut)
def list_attempts(user_id: str):
    with get_session() as db:
        rows = (
            db.query(models.Submission)
            .filter(models.Submission.user_id == user_id)
            .order_by(models.Submission.created_at.desc(), models.Submission.id.desc())
            .all()
        )
        items = []
        for s in rows:
            answers = sorted(s.answers, key=lambda a: a.question.order_num if a.question else 0)
            items.append({
                "id": s.id,
                "quiz_id": s.quiz_id,
                "quiz_title": s.quiz.title if s.quiz else "Unknown Quiz",
                "quiz_type": (s.quiz.quiz_type if s.quiz else None) or "scored",
                "score": s.score,
                "max_score": s.max_score,
                "percentage": percentage(s.score, s.max_score),
                "created_at": s.created_at.isoformat(),
                "answers": [
                    {
                        "question_id": a.question_id,
                        "question": a.question.question if a.question else "",
                        "selected_option": a.selected_option.option_text if a.selected_option else "Unknown Option",
                    }
                    for a in answers
                ],
            })
        return {"items": items}

@app.delete("/api/attempts/{submission_id}")
def delete_attempt(submission_id: int):
    with get_session() as db:
        s = db.query(models.Submission).filter(models.Submission.id == submission_id).first()
        if not s:
            raise HTTPException(status_code=404, detail="Attempt not found")
        db.delete(s)
        db.commit()
        return {"ok": True}
