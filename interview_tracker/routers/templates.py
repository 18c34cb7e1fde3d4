from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud
from ..auth import get_current_user
from ..database import get_db
from ..schemas import CurrentUser, Envelope, TemplateOut, TemplateStageOut, TemplateWithStages

router = APIRouter(prefix="/api/templates", tags=["templates"])


@router.get("", response_model=Envelope[list[TemplateOut]])
def list_templates(db: Session = Depends(get_db), _: CurrentUser = Depends(get_current_user)):
    templates = crud.list_templates(db)
    return {"message": "Templates retrieved", "data": [TemplateOut.model_validate(t) for t in templates]}


@router.get("/{template_id}/stages", response_model=Envelope[TemplateWithStages])
def get_template_stages(template_id: int, db: Session = Depends(get_db), _: CurrentUser = Depends(get_current_user)):
    template = crud.get_template(db, template_id)
    return {
        "message": "Template stages retrieved",
        "data": {
            "template": TemplateOut.model_validate(template),
            "stages": [TemplateStageOut.model_validate(s) for s in template.stages],
        },
    }
