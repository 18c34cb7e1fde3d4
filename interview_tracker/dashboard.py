"""Read-only rollups over a user's applications."""
from __future__ import annotations

import calendar
from collections import OrderedDict
from datetime import date

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session, selectinload

from . import models


def months_ago(day: date, months: int) -> date:
    """Same day-of-month ``months`` earlier, clamped to the month's length."""
    total = day.year * 12 + (day.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def success_rate(offers: int, total: int) -> float:
    """Offers as a percentage of all applications, one decimal; 0 for no applications."""
    if total == 0:
        return 0.0
    return round(offers / total * 100, 1)


def _totals(db: Session, user_id: int) -> dict[str, int]:
    A = models.Application
    row = db.execute(
        select(
            func.count(A.id),
            func.sum(case((A.final_result == "offer", 1), else_=0)),
            func.sum(case((A.final_result == "rejected", 1), else_=0)),
            func.sum(case((A.final_result == "pending", 1), else_=0)),
        ).where(A.user_id == user_id)
    ).one()
    total, offers, rejections, pending = (int(v or 0) for v in row)
    return {"total": total, "offers": offers, "rejections": rejections, "pending": pending}


def monthly_buckets(db: Session, user_id: int, months: int = 12, today: date | None = None) -> list[dict]:
    """
    Per-month counts for the trailing window, oldest first.

    Only months with at least one application appear. Bucketing is done here
    rather than in SQL so SQLite and Postgres agree on the month key.
    """
    today = today or date.today()
    since = months_ago(today, months)
    rows = db.execute(
        select(models.Application.application_date, models.Application.final_result)
        .where(models.Application.user_id == user_id, models.Application.application_date >= since)
        .order_by(models.Application.application_date.asc())
    ).all()

    buckets: OrderedDict[str, dict] = OrderedDict()
    for applied_on, result in rows:
        key = applied_on.strftime("%Y-%m")
        bucket = buckets.setdefault(key, {"month": key, "count": 0, "offers": 0, "rejections": 0})
        bucket["count"] += 1
        if result == "offer":
            bucket["offers"] += 1
        elif result == "rejected":
            bucket["rejections"] += 1
    return list(buckets.values())


def recent_applications(db: Session, user_id: int, limit: int = 5) -> list[models.Application]:
    return list(
        db.execute(
            select(models.Application)
            .options(selectinload(models.Application.current_stage))
            .where(models.Application.user_id == user_id)
            .order_by(models.Application.created_at.desc(), models.Application.id.desc())
            .limit(limit)
        ).scalars()
    )


def get_dashboard_stats(db: Session, user_id: int, months: int = 12, today: date | None = None) -> dict:
    totals = _totals(db, user_id)
    return {
        "total_applications": totals["total"],
        "total_offers": totals["offers"],
        "total_rejections": totals["rejections"],
        "total_pending": totals["pending"],
        "success_rate": success_rate(totals["offers"], totals["total"]),
        # applications still awaiting a hiring decision
        "active_pipeline": totals["pending"],
        "monthly": monthly_buckets(db, user_id, months, today),
        "recent_applications": recent_applications(db, user_id),
    }
