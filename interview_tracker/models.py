# interview_tracker/models.py
from __future__ import annotations
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base

FINAL_RESULTS = ("pending", "offer", "rejected")
STAGE_RESULTS = ("pending", "pass", "fail")

# Largest value a signed 64-bit INTEGER column holds
MAX_ID = 2**63 - 1


def id_in_range(value: int) -> bool:
    return 0 < value <= MAX_ID


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    # RFC 5321 cap is 320 chars; unique + indexed for login lookups
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    applications: Mapped[list["Application"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )


# --- Stage templates (static reference data) ---

class StageTemplate(Base):
    __tablename__ = "stage_templates"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(512), nullable=True)

    stages: Mapped[list["TemplateStage"]] = relationship(
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="TemplateStage.stage_order",
    )


class TemplateStage(Base):
    __tablename__ = "template_stages"
    __table_args__ = (UniqueConstraint("template_id", "stage_order", name="uq_template_stages_order"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    template_id: Mapped[int] = mapped_column(
        ForeignKey("stage_templates.id", ondelete="CASCADE"), index=True, nullable=False
    )
    stage_name: Mapped[str] = mapped_column(String(120), nullable=False)
    stage_order: Mapped[int] = mapped_column(Integer, nullable=False)

    template: Mapped[StageTemplate] = relationship(back_populates="stages")


# --- Applications & their interview pipeline ---

class Application(Base):
    __tablename__ = "applications"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    job_title: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    application_date: Mapped[date] = mapped_column(Date, index=True, nullable=False)
    salary_min: Mapped[float | None] = mapped_column(Float, nullable=True)
    salary_max: Mapped[float | None] = mapped_column(Float, nullable=True)
    job_link: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    final_result: Mapped[str] = mapped_column(String(16), default="pending", nullable=False, index=True)
    # stages.id <-> applications.id is a cycle; the FK is added after both tables exist
    current_stage_id: Mapped[int | None] = mapped_column(
        ForeignKey("stages.id", ondelete="SET NULL", use_alter=True, name="fk_applications_current_stage_id"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    user: Mapped[User] = relationship(back_populates="applications")
    stages: Mapped[list["Stage"]] = relationship(
        back_populates="application",
        foreign_keys="Stage.application_id",
        cascade="all, delete-orphan",
        order_by="Stage.stage_order",
    )
    current_stage: Mapped[Optional["Stage"]] = relationship(
        foreign_keys=[current_stage_id], viewonly=True
    )
    reminders: Mapped[list["Reminder"]] = relationship(
        back_populates="application", cascade="all, delete-orphan"
    )

    @property
    def current_stage_name(self) -> str | None:
        return self.current_stage.stage_name if self.current_stage else None


class Stage(Base):
    __tablename__ = "stages"
    __table_args__ = (UniqueConstraint("application_id", "stage_order", name="uq_stages_application_order"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    application_id: Mapped[int] = mapped_column(
        ForeignKey("applications.id", ondelete="CASCADE"), index=True, nullable=False
    )
    stage_name: Mapped[str] = mapped_column(String(255), nullable=False)
    stage_order: Mapped[int] = mapped_column(Integer, nullable=False)
    feedback_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    result: Mapped[str] = mapped_column(String(16), default="pending", nullable=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    application: Mapped[Application] = relationship(
        back_populates="stages", foreign_keys=[application_id]
    )

    @property
    def status(self) -> str:
        """Tagged view over the two stored flags: ``pending`` or ``completed``."""
        return "completed" if self.is_completed else "pending"


class Reminder(Base):
    __tablename__ = "reminders"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    application_id: Mapped[int] = mapped_column(
        ForeignKey("applications.id", ondelete="CASCADE"), index=True, nullable=False
    )
    reminder_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)
    message: Mapped[str | None] = mapped_column(String(512), nullable=True)
    is_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    application: Mapped[Application] = relationship(back_populates="reminders")
