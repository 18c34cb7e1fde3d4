from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from . import models, security
from .database import transaction
from .errors import NotFound, ValidationError

logger = logging.getLogger(__name__)

# Fields a client may set on an application; anything else is ignored
APPLICATION_FIELDS = (
    "company_name",
    "job_title",
    "location",
    "application_date",
    "salary_min",
    "salary_max",
    "job_link",
    "notes",
    "final_result",
)


# ---------- Users ----------

def get_user_by_email(db: Session, email: str) -> models.User | None:
    return db.query(models.User).filter(models.User.email == email.lower()).first()

def get_user(db: Session, user_id: int) -> models.User | None:
    if not models.id_in_range(user_id):
        return None
    return db.get(models.User, user_id)

def create_user(db: Session, name: str, email: str, password: str) -> models.User:
    hashed_pw = security.hash_password(password)
    user = models.User(name=name, email=email.lower(), hashed_password=hashed_pw)
    with transaction(db):
        db.add(user)
    db.refresh(user)
    return user


# ---------- Stage seeding ----------

@dataclass(frozen=True)
class TemplateSeed:
    """Copy the stages of a stage template."""
    template_id: int


@dataclass(frozen=True)
class ManualSeed:
    """Seed from caller-supplied ``(stage_name, stage_order | None)`` pairs."""
    stages: list[tuple[str, int | None]] = field(default_factory=list)


StageSeed = TemplateSeed | ManualSeed | None


def seed_from_request(template_id: int | None, stages: list | None) -> StageSeed:
    """A template id wins over a manual list when both are sent."""
    if template_id:
        return TemplateSeed(template_id)
    if stages:
        return ManualSeed([(s.stage_name, s.stage_order) for s in stages])
    return None


def _resolve_seed(db: Session, seed: StageSeed) -> list[tuple[str, int]]:
    if isinstance(seed, TemplateSeed):
        template = db.get(models.StageTemplate, seed.template_id) if models.id_in_range(seed.template_id) else None
        if template is None:
            raise NotFound("Template not found.")
        return [(ts.stage_name, ts.stage_order) for ts in template.stages]
    if isinstance(seed, ManualSeed):
        if any(not (name or "").strip() for name, _ in seed.stages):
            raise ValidationError("Stage name is required")
        # absent orders fall back to the 1-based list position
        return [(name, order if order is not None else i) for i, (name, order) in enumerate(seed.stages, start=1)]
    return []


# ---------- Applications ----------

def create_application(db: Session, user_id: int, data: dict, seed: StageSeed = None) -> models.Application:
    """
    Insert an application and its seed stages in one transaction.

    The first stage created becomes the current stage. If anything fails
    (unknown template, duplicate stage order) nothing is written.
    """
    with transaction(db):
        app = models.Application(user_id=user_id, **{k: data[k] for k in APPLICATION_FIELDS if k in data})
        db.add(app)
        db.flush()  # need app.id for the stages

        first_stage: models.Stage | None = None
        for name, order in _resolve_seed(db, seed):
            stage = models.Stage(application_id=app.id, stage_name=name, stage_order=order)
            db.add(stage)
            db.flush()
            if first_stage is None:
                first_stage = stage

        if first_stage is not None:
            app.current_stage_id = first_stage.id

    db.refresh(app)
    logger.info("Created application %s for user %s (%d seed stages)", app.id, user_id, len(app.stages))
    return app

def get_application(db: Session, user_id: int, application_id: int) -> models.Application:
    if not models.id_in_range(application_id):
        raise NotFound("Application not found.")
    app = db.execute(
        select(models.Application).where(
            models.Application.id == application_id, models.Application.user_id == user_id
        )
    ).scalar_one_or_none()
    if app is None:
        raise NotFound("Application not found.")
    return app

def list_applications(
    db: Session,
    user_id: int,
    search: str | None = None,
    result: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[models.Application], int]:
    conditions = [models.Application.user_id == user_id]
    if search:
        pattern = f"%{search}%"
        conditions.append(
            or_(models.Application.company_name.ilike(pattern), models.Application.job_title.ilike(pattern))
        )
    if result in models.FINAL_RESULTS:
        conditions.append(models.Application.final_result == result)

    total = db.execute(select(func.count()).select_from(models.Application).where(*conditions)).scalar_one()
    rows = db.execute(
        select(models.Application)
        .options(selectinload(models.Application.current_stage))
        .where(*conditions)
        .order_by(models.Application.created_at.desc(), models.Application.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    ).scalars().all()
    return list(rows), total

def update_application(db: Session, app: models.Application, data: dict) -> models.Application:
    with transaction(db):
        for key in APPLICATION_FIELDS:
            if key in data:
                setattr(app, key, data[key])
    db.refresh(app)
    return app

def delete_application(db: Session, app: models.Application) -> None:
    """Stages and reminders go with it."""
    app_id = app.id
    with transaction(db):
        db.delete(app)
    logger.info("Deleted application %s", app_id)


# ---------- Templates ----------

def list_templates(db: Session) -> list[models.StageTemplate]:
    return list(db.execute(select(models.StageTemplate).order_by(models.StageTemplate.name.asc())).scalars())

def get_template(db: Session, template_id: int) -> models.StageTemplate:
    template = db.get(models.StageTemplate, template_id) if models.id_in_range(template_id) else None
    if template is None:
        raise NotFound("Template not found.")
    return template


# ---------- Reminders ----------

def create_reminder(
    db: Session, app: models.Application, reminder_date: datetime, message: str | None = None
) -> models.Reminder:
    if reminder_date.tzinfo is not None:
        # stored as UTC; naive values are taken to be UTC already
        reminder_date = reminder_date.astimezone(timezone.utc)
    reminder = models.Reminder(application_id=app.id, reminder_date=reminder_date, message=message)
    with transaction(db):
        db.add(reminder)
    db.refresh(reminder)
    return reminder

def list_reminders(db: Session, app: models.Application) -> list[models.Reminder]:
    return list(
        db.execute(
            select(models.Reminder)
            .where(models.Reminder.application_id == app.id)
            .order_by(models.Reminder.reminder_date.asc())
        ).scalars()
    )
