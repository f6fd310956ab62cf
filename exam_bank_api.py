"""
Exam Bank API — Main Application
FastAPI application for the exam paper builder.
Manages the question bank, paper templates, paper generation, stored exams
and exam-taking sessions.
"""

from dotenv import load_dotenv
load_dotenv()

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from database.database import engine, Base, SessionLocal
from database.models import Curriculum, Grade

from routers import (
    questions, templates, paper, lookup, topics,
    exams, exam_sessions,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(levelname)s  %(message)s")
log = logging.getLogger(__name__)


# (name, level, band, level_order)
CBC_GRADES = [
    ("Grade 1", "primary", "lower_primary", 1),
    ("Grade 2", "primary", "lower_primary", 2),
    ("Grade 3", "primary", "lower_primary", 3),
    ("Grade 4", "primary", "upper_primary", 4),
    ("Grade 5", "primary", "upper_primary", 5),
    ("Grade 6", "primary", "upper_primary", 6),
    ("Grade 7", "junior", "junior_school", 7),
    ("Grade 8", "junior", "junior_school", 8),
    ("Grade 9", "junior", "junior_school", 9),
]


def _seed_defaults():
    """Create the CBC curriculum and its grades if no curriculum exists yet."""
    db = SessionLocal()
    try:
        if db.query(Curriculum).count() == 0:
            cbc = Curriculum(
                name="CBC",
                description="Competency Based Curriculum",
                country="Kenya",
            )
            db.add(cbc)
            db.flush()
            for name, level, band, order in CBC_GRADES:
                db.add(Grade(curriculum_id=cbc.id, name=name, level=level, band=band, level_order=order))
            db.commit()
            log.info("✓ Default curriculum seeded (CBC, Grades 1–9)")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: create tables + seed defaults."""
    Base.metadata.create_all(bind=engine)
    _seed_defaults()
    yield


app = FastAPI(
    title="Exam Bank API",
    description="Question bank, paper templates, paper generation and exam sessions",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ─── Routers ───────────────────────────────────────────────────────────────────

# Lookup data
app.include_router(lookup.router)             # /lookup
app.include_router(topics.router)             # /topics/*

# Question bank
app.include_router(questions.router)          # /questions/*

# Paper building
app.include_router(templates.router)          # /templates/*
app.include_router(paper.router)              # /paper/generate
app.include_router(exams.router)              # /exams/*

# Exam taking
app.include_router(exam_sessions.router)      # /exam-sessions/*


@app.get("/")
def root():
    return {
        "name": "Exam Bank API",
        "version": "1.0.0",
        "endpoints": {
            "docs": "/docs",
            "lookup": "/lookup",
            "topics": "/topics",
            "questions": "/questions",
            "templates": "/templates",
            "generate_paper": "/paper/generate",
            "exams": "/exams",
            "exam_sessions": "/exam-sessions",
        },
    }


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": "exam-bank-api"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
