"""
Interview pipeline of a single application.

An application owns an ordered list of stages and a nullable pointer to its
current stage. Every operation here runs in one transaction, so the pointer
never refers to a deleted stage or to a stage of another application.

Stage status is two independent stored flags, ``is_completed`` and
``result``; all four combinations of "completed or not" and
pending/pass/fail are legal. Completion is one-way: there is no reopen.

Advancing is always explicit (``move_to_next``). It picks the next
*incomplete* stage by order and does not require the current stage to be
completed first. ``final_result`` on the application is never derived from
stage outcomes.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from . import models
from .database import transaction
from .errors import InvalidState, NotFound, ValidationError

logger = logging.getLogger(__name__)

# Stage fields a partial update may touch; completion flags are not among them
UPDATABLE_STAGE_FIELDS = ("stage_name", "stage_order", "feedback_notes", "result")

_KEEP = object()


def _check_result(result: str) -> None:
    if result not in models.STAGE_RESULTS:
        raise ValidationError(f"Stage result must be one of: {', '.join(models.STAGE_RESULTS)}")


def get_owned_stage(db: Session, user_id: int, stage_id: int) -> models.Stage:
    """Look up a stage through its application's owner."""
    if not models.id_in_range(stage_id):
        raise NotFound("Stage not found.")
    stage = db.execute(
        select(models.Stage)
        .join(models.Application, models.Stage.application_id == models.Application.id)
        .where(models.Stage.id == stage_id, models.Application.user_id == user_id)
    ).scalar_one_or_none()
    if stage is None:
        raise NotFound("Stage not found.")
    return stage


def list_stages(db: Session, application: models.Application) -> list[models.Stage]:
    return list(
        db.execute(
            select(models.Stage)
            .where(models.Stage.application_id == application.id)
            .order_by(models.Stage.stage_order.asc(), models.Stage.id.asc())
        ).scalars()
    )


def next_stage_order(db: Session, application_id: int) -> int:
    max_order = db.execute(
        select(func.max(models.Stage.stage_order)).where(models.Stage.application_id == application_id)
    ).scalar_one_or_none()
    return (max_order or 0) + 1


def add_stage(
    db: Session,
    application: models.Application,
    stage_name: str,
    stage_order: int | None = None,
    feedback_notes: str | None = None,
    result: str = "pending",
) -> models.Stage:
    """
    Append a stage. Without an explicit order it goes after the last one.
    The first stage of an application without a current stage becomes current.
    """
    if not (stage_name or "").strip():
        raise ValidationError("Stage name is required")
    _check_result(result)
    with transaction(db):
        order = stage_order if stage_order else next_stage_order(db, application.id)
        stage = models.Stage(
            application_id=application.id,
            stage_name=stage_name,
            stage_order=order,
            feedback_notes=feedback_notes,
            result=result,
        )
        db.add(stage)
        db.flush()
        if application.current_stage_id is None:
            application.current_stage_id = stage.id
    db.refresh(stage)
    logger.debug("Added stage %s (order %s) to application %s", stage.id, stage.stage_order, application.id)
    return stage


def complete_stage(
    db: Session,
    stage: models.Stage,
    result: str = "pass",
    feedback_notes: str | None | object = _KEEP,
) -> models.Stage:
    """
    Mark a stage completed with the given outcome.

    Completing twice is allowed; the latest call's result, notes and
    timestamp win. Notes are only replaced when passed in. The application's
    current stage does not move.
    """
    _check_result(result)
    with transaction(db):
        stage.is_completed = True
        stage.completed_at = datetime.now(timezone.utc)
        stage.result = result
        if feedback_notes is not _KEEP:
            stage.feedback_notes = feedback_notes
    db.refresh(stage)
    return stage


def move_to_next(db: Session, application: models.Application) -> models.Stage:
    """
    Point the application at the next incomplete stage by order.

    Completed stages ahead of the current one are skipped. Raises
    InvalidState when there is no current stage or nothing is left to move to;
    in the latter case the application stays where it is.
    """
    if application.current_stage_id is None:
        raise InvalidState("This application has no stages defined.")

    current = db.get(models.Stage, application.current_stage_id)
    if current is None or current.application_id != application.id:
        raise InvalidState("This application has no stages defined.")

    with transaction(db):
        nxt = db.execute(
            select(models.Stage)
            .where(
                models.Stage.application_id == application.id,
                models.Stage.stage_order > current.stage_order,
                models.Stage.is_completed.is_(False),
            )
            .order_by(models.Stage.stage_order.asc())
            .limit(1)
        ).scalar_one_or_none()
        if nxt is None:
            raise InvalidState("No more stages. This is the final stage.")
        application.current_stage_id = nxt.id
    db.refresh(nxt)
    logger.info("Application %s moved from stage %s to %s", application.id, current.id, nxt.id)
    return nxt


def update_stage(db: Session, stage: models.Stage, fields: dict) -> models.Stage:
    """Partial update; completion and the current-stage pointer are untouched."""
    if fields.get("result") is not None:
        _check_result(fields["result"])
    with transaction(db):
        for key in UPDATABLE_STAGE_FIELDS:
            if key in fields and fields[key] is not None:
                setattr(stage, key, fields[key])
            elif key == "feedback_notes" and key in fields:
                stage.feedback_notes = None
    db.refresh(stage)
    return stage


def delete_stage(db: Session, stage: models.Stage) -> None:
    """
    Remove a stage. If it was current, the remaining stage with the lowest id
    takes over (not the next by order), or the pointer is cleared.
    """
    application_id = stage.application_id
    application = db.get(models.Application, application_id)
    with transaction(db):
        if application is not None and application.current_stage_id == stage.id:
            replacement_id = db.execute(
                select(models.Stage.id)
                .where(models.Stage.application_id == application.id, models.Stage.id != stage.id)
                .order_by(models.Stage.id.asc())
                .limit(1)
            ).scalar_one_or_none()
            application.current_stage_id = replacement_id
            # pointer must move before the row goes
            db.flush()
        db.delete(stage)
    logger.debug("Deleted stage from application %s", application_id)
