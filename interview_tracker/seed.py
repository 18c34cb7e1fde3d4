from __future__ import annotations
import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from . import models
from .database import transaction

logger = logging.getLogger(__name__)

# (name, description, [stage names in order])
DEFAULT_TEMPLATES: list[tuple[str, str, list[str]]] = [
    (
        "Software Engineering",
        "Typical loop for engineering roles",
        ["Recruiter Screen", "Technical Phone Screen", "Coding Interview", "System Design", "Final Round"],
    ),
    (
        "Product Management",
        "Product roles with a case study",
        ["Recruiter Screen", "Hiring Manager Interview", "Product Case Study", "Final Round"],
    ),
    (
        "Data Science",
        "Analytics and ML roles with a take-home",
        ["Recruiter Screen", "Take-home Assignment", "Technical Interview", "Final Round"],
    ),
    (
        "Short Process",
        "Two-step process for small companies",
        ["Phone Screen", "Onsite"],
    ),
]


def seed_templates(db: Session) -> int:
    """Insert the default templates if there are none yet. Returns how many were added."""
    existing = db.execute(select(func.count(models.StageTemplate.id))).scalar_one()
    if existing:
        return 0
    with transaction(db):
        for name, description, stage_names in DEFAULT_TEMPLATES:
            template = models.StageTemplate(name=name, description=description)
            template.stages = [
                models.TemplateStage(stage_name=stage_name, stage_order=order)
                for order, stage_name in enumerate(stage_names, start=1)
            ]
            db.add(template)
    logger.info("Seeded %d stage templates", len(DEFAULT_TEMPLATES))
    return len(DEFAULT_TEMPLATES)
