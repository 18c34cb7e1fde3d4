from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from .. import pipeline
from ..auth import get_current_user
from ..database import get_db
from ..schemas import CurrentUser, Envelope, Message, StageComplete, StageOut, StageUpdate

router = APIRouter(prefix="/api/stages", tags=["stages"])


@router.put("/{stage_id}", response_model=Envelope[StageOut])
def update_stage(
    stage_id: int,
    payload: StageUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    stage = pipeline.get_owned_stage(db, user.id, stage_id)
    stage = pipeline.update_stage(db, stage, payload.model_dump(exclude_unset=True))
    return {"message": "Stage updated", "data": StageOut.model_validate(stage)}


@router.patch("/{stage_id}/complete", response_model=Envelope[StageOut])
def complete_stage(
    stage_id: int,
    payload: StageComplete | None = Body(None),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    stage = pipeline.get_owned_stage(db, user.id, stage_id)
    payload = payload or StageComplete()
    kwargs = {"result": payload.result}
    if "feedback_notes" in payload.model_fields_set:
        kwargs["feedback_notes"] = payload.feedback_notes
    stage = pipeline.complete_stage(db, stage, **kwargs)
    return {"message": "Stage marked as completed", "data": StageOut.model_validate(stage)}


@router.delete("/{stage_id}", response_model=Message)
def delete_stage(stage_id: int, db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    stage = pipeline.get_owned_stage(db, user.id, stage_id)
    pipeline.delete_stage(db, stage)
    return {"message": "Stage deleted"}
