"""
Paper Generation router — /paper

Endpoints:
  POST /paper/generate   — assemble a paper from a template and the question bank

The paper is returned, not stored. Saving it is a separate POST /exams.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database.database import get_db
from generation.errors import TemplateNotFoundError
from generation.paper_assembler import generate_paper
from generation.schemas import GeneratePaperRequest, GeneratePaperResponse

router = APIRouter(prefix="/paper", tags=["paper"])

log = logging.getLogger("generation.pipeline")


@router.post("/generate", response_model=GeneratePaperResponse)
def generate(request: GeneratePaperRequest, db: Session = Depends(get_db)):
    """
    **Generate a paper from a template.**

    Sections are filled in template order; a question used by an earlier
    section is never reused by a later one. Sections that cannot be filled
    are reported in `warnings` and the paper is marked `isComplete: false`.

    Body: `{"templateId": 3, "options": {"preferTopics": ["Algebra"]}}`
    """
    if not request.template_id:
        raise HTTPException(status_code=400, detail="templateId is required")

    try:
        return generate_paper(
            db, request.template_id,
            prefer_topics=request.options.prefer_topics,
        )
    except TemplateNotFoundError:
        raise HTTPException(status_code=404, detail="Template not found")
    except Exception as e:
        log.exception(f"[GENERATE] template={request.template_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate paper")
