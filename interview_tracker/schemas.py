from __future__ import annotations
from datetime import date, datetime
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, EmailStr, Field, HttpUrl, field_serializer, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

FinalResult = Literal["pending", "offer", "rejected"]
StageResult = Literal["pending", "pass", "fail"]

T = TypeVar("T")

MAX_STAGE_ORDER = 10_000


# Response envelope
class Envelope(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: T | None = None


class Message(BaseModel):
    success: bool = True
    message: str


def _required_text(value, message: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(message)
    return value.strip()


# Users / auth
class UserCreate(BaseModel):
    name: str
    email: EmailStr
    password: str

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, v):
        return _required_text(v, "Name is required")

    @field_validator("email", mode="after")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email", mode="after")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        return v.lower()


class UserOut(BaseModel):
    id: int
    name: str
    email: EmailStr
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class AuthOut(BaseModel):
    token: str
    user: UserOut


class CurrentUser(BaseModel):
    """Identity decoded from a bearer token."""

    id: int
    email: str
    name: str | None = None


# Stages
class StageOut(BaseModel):
    id: int
    application_id: int
    stage_name: str
    stage_order: int
    feedback_notes: str | None = None
    result: StageResult
    is_completed: bool
    completed_at: datetime | None = None
    status: Literal["pending", "completed"]

    model_config = {"from_attributes": True}


class StageCreate(BaseModel):
    stage_name: str
    stage_order: int | None = Field(None, ge=1, le=MAX_STAGE_ORDER)
    feedback_notes: str | None = None
    result: StageResult = "pending"

    @field_validator("stage_name", mode="before")
    @classmethod
    def _name(cls, v):
        return _required_text(v, "Stage name is required")


class StageUpdate(BaseModel):
    stage_name: str | None = None
    stage_order: int | None = Field(None, ge=1, le=MAX_STAGE_ORDER)
    feedback_notes: str | None = None
    result: StageResult | None = None

    @field_validator("stage_name", mode="before")
    @classmethod
    def _name(cls, v):
        if v is None:
            return v
        return _required_text(v, "Stage name cannot be empty")


class StageComplete(BaseModel):
    result: StageResult = "pass"
    feedback_notes: str | None = None


class MoveNextOut(BaseModel):
    current_stage: StageOut


class SeedStage(BaseModel):
    stage_name: str
    stage_order: int | None = Field(None, ge=1, le=MAX_STAGE_ORDER)

    @field_validator("stage_name", mode="before")
    @classmethod
    def _name(cls, v):
        return _required_text(v, "Stage name is required")


# Applications
class ApplicationBase(BaseModel):
    company_name: str
    job_title: str
    location: str | None = None
    application_date: date
    salary_min: float | None = Field(None, ge=0)
    salary_max: float | None = Field(None, ge=0)
    job_link: HttpUrl | None = None
    notes: str | None = None
    final_result: FinalResult = "pending"

    @field_validator("company_name", mode="before")
    @classmethod
    def _company(cls, v):
        return _required_text(v, "Company name is required")

    @field_validator("job_title", mode="before")
    @classmethod
    def _title(cls, v):
        return _required_text(v, "Job title is required")

    @field_validator("job_link", mode="wrap")
    @classmethod
    def _link(cls, v, handler):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        try:
            return handler(v.strip() if isinstance(v, str) else v)
        except PydanticValidationError:
            raise ValueError("job_link must be a valid URL")

    @field_serializer("job_link")
    def _link_as_text(self, v: HttpUrl | None) -> str | None:
        # stored in a plain VARCHAR column
        return str(v) if v is not None else None

    @field_validator("location", "notes", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def _salary_range(self):
        if self.salary_min is not None and self.salary_max is not None and self.salary_min > self.salary_max:
            raise ValueError("salary_min cannot exceed salary_max")
        return self


class ApplicationCreate(ApplicationBase):
    # Stage seeding: a template to copy, or an explicit ordered list
    template_id: int | None = None
    stages: list[SeedStage] | None = None


class ApplicationUpdate(ApplicationBase):
    pass


class ApplicationOut(BaseModel):
    id: int
    user_id: int
    company_name: str
    job_title: str
    location: str | None = None
    application_date: date
    salary_min: float | None = None
    salary_max: float | None = None
    job_link: str | None = None
    notes: str | None = None
    final_result: FinalResult
    current_stage_id: int | None = None
    current_stage_name: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class ApplicationPage(BaseModel):
    items: list[ApplicationOut]
    pagination: Pagination


# Templates
class TemplateOut(BaseModel):
    id: int
    name: str
    description: str | None = None

    model_config = {"from_attributes": True}


class TemplateStageOut(BaseModel):
    id: int
    stage_name: str
    stage_order: int

    model_config = {"from_attributes": True}


class TemplateWithStages(BaseModel):
    template: TemplateOut
    stages: list[TemplateStageOut]


# Dashboard
class MonthlyBucket(BaseModel):
    month: str
    count: int
    offers: int
    rejections: int


class RecentApplication(BaseModel):
    id: int
    company_name: str
    job_title: str
    final_result: FinalResult
    application_date: date
    current_stage_name: str | None = None

    model_config = {"from_attributes": True}


class DashboardStats(BaseModel):
    total_applications: int
    total_offers: int
    total_rejections: int
    total_pending: int
    success_rate: float
    active_pipeline: int
    monthly: list[MonthlyBucket]
    recent_applications: list[RecentApplication]


# Reminders
class ReminderCreate(BaseModel):
    reminder_date: datetime
    message: str | None = Field(None, max_length=512)


class ReminderOut(BaseModel):
    id: int
    application_id: int
    reminder_date: datetime
    message: str | None = None
    is_sent: bool
    created_at: datetime

    model_config = {"from_attributes": True}
