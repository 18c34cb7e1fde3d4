import math

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import crud, pipeline
from ..auth import get_current_user
from ..database import get_db
from ..schemas import (
    ApplicationCreate,
    ApplicationOut,
    ApplicationPage,
    ApplicationUpdate,
    CurrentUser,
    Envelope,
    FinalResult,
    Message,
    MoveNextOut,
    ReminderCreate,
    ReminderOut,
    StageCreate,
    StageOut,
)

router = APIRouter(prefix="/api/applications", tags=["applications"])

# keeps the row offset well inside a 64-bit integer
MAX_PAGE = 1_000_000


@router.get("", response_model=Envelope[ApplicationPage])
def list_applications(
    search: str | None = Query(None, description="Matches company name or job title"),
    result: FinalResult | None = Query(None),
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    rows, total = crud.list_applications(db, user.id, search=search, result=result, page=page, limit=limit)
    return {
        "message": "Applications retrieved",
        "data": {
            "items": [ApplicationOut.model_validate(a) for a in rows],
            "pagination": {"total": total, "page": page, "limit": limit, "pages": math.ceil(total / limit)},
        },
    }


@router.post("", response_model=Envelope[ApplicationOut], status_code=status.HTTP_201_CREATED)
def create_application(
    payload: ApplicationCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    seed = crud.seed_from_request(payload.template_id, payload.stages)
    data = payload.model_dump(exclude={"template_id", "stages"})
    app = crud.create_application(db, user.id, data, seed)
    return {"message": "Application created", "data": ApplicationOut.model_validate(app)}


@router.get("/{application_id}", response_model=Envelope[ApplicationOut])
def get_application(application_id: int, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    app = crud.get_application(db, user.id, application_id)
    return {"message": "Application retrieved", "data": ApplicationOut.model_validate(app)}


@router.put("/{application_id}", response_model=Envelope[ApplicationOut])
def update_application(
    application_id: int,
    payload: ApplicationUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    app = crud.get_application(db, user.id, application_id)
    app = crud.update_application(db, app, payload.model_dump())
    return {"message": "Application updated", "data": ApplicationOut.model_validate(app)}


@router.delete("/{application_id}", response_model=Message)
def delete_application(application_id: int, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    app = crud.get_application(db, user.id, application_id)
    crud.delete_application(db, app)
    return {"message": "Application deleted successfully"}


# Stage sub-routes scoped to an application
@router.get("/{application_id}/stages", response_model=Envelope[list[StageOut]])
def list_stages(application_id: int, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    app = crud.get_application(db, user.id, application_id)
    stages = pipeline.list_stages(db, app)
    return {"message": "Stages retrieved", "data": [StageOut.model_validate(s) for s in stages]}


@router.post("/{application_id}/stages", response_model=Envelope[StageOut], status_code=status.HTTP_201_CREATED)
def add_stage(
    application_id: int,
    payload: StageCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    app = crud.get_application(db, user.id, application_id)
    stage = pipeline.add_stage(
        db,
        app,
        stage_name=payload.stage_name,
        stage_order=payload.stage_order,
        feedback_notes=payload.feedback_notes,
        result=payload.result,
    )
    return {"message": "Stage added", "data": StageOut.model_validate(stage)}


@router.patch("/{application_id}/move-next", response_model=Envelope[MoveNextOut])
def move_to_next_stage(application_id: int, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    app = crud.get_application(db, user.id, application_id)
    stage = pipeline.move_to_next(db, app)
    return {"message": "Moved to next stage", "data": {"current_stage": StageOut.model_validate(stage)}}


# Reminders
@router.get("/{application_id}/reminders", response_model=Envelope[list[ReminderOut]])
def list_reminders(application_id: int, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    app = crud.get_application(db, user.id, application_id)
    reminders = crud.list_reminders(db, app)
    return {"message": "Reminders retrieved", "data": [ReminderOut.model_validate(r) for r in reminders]}


@router.post("/{application_id}/reminders", response_model=Envelope[ReminderOut], status_code=status.HTTP_201_CREATED)
def create_reminder(
    application_id: int,
    payload: ReminderCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    app = crud.get_application(db, user.id, application_id)
    reminder = crud.create_reminder(db, app, payload.reminder_date, payload.message)
    return {"message": "Reminder scheduled", "data": ReminderOut.model_validate(reminder)}
