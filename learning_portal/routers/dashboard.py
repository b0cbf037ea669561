from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from learning_portal.core.config import settings
from learning_portal.models.db import get_db
from learning_portal.models.schemas import CurrentUser, DashboardOut, StudentProgressOut
from learning_portal.routers.auth import require_user
from learning_portal.services.data_access import SqlPortalDataSource
from learning_portal.services.progress import (
    build_recent_achievements,
    build_recent_activity,
    build_upcoming_activity,
    compute_overall_progress,
    compute_student_progress,
    count_lessons_this_week,
)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardOut)
def home(user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    source = SqlPortalDataSource(db)
    guardian = source.fetch_guardian(user.id)
    snap = source.fetch_snapshot(user.id)
    now = datetime.now(timezone.utc)

    summaries = [
        compute_student_progress(s, snap.lessons_for(s), snap.completions_for(s), snap.achievements_for(s))
        for s in snap.students
    ]
    all_completions = [c for s in snap.students for c in snap.completions_for(s)]
    all_achievements = [a for s in snap.students for a in snap.achievements_for(s)]

    # upcoming lessons are listed for the first child, as on the home screen
    upcoming = []
    if snap.students:
        first = snap.students[0]
        upcoming = build_upcoming_activity(
            snap.lessons_for(first),
            snap.completions_for(first),
            limit=settings.UPCOMING_ACTIVITY_LIMIT,
            student_name=first.name,
        )

    return {
        "guardian_name": (guardian.name if guardian else "") or "Parent",
        "overall_progress": compute_overall_progress(summaries),
        "active_students": len(snap.students),
        "lessons_this_week": sum(count_lessons_this_week(ls) for ls in snap.lessons_by_grade.values()),
        "recent_activity": [
            a.model_dump()
            for a in build_recent_activity(all_completions, now, limit=settings.RECENT_ACTIVITY_LIMIT)
        ],
        "upcoming_activity": [u.model_dump() for u in upcoming],
        "recent_achievements": [
            a.model_dump()
            for a in build_recent_achievements(all_achievements, now, limit=settings.RECENT_ACHIEVEMENTS_LIMIT)
        ],
    }


@router.get("/progress", response_model=List[StudentProgressOut])
def family_progress(user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    snap = SqlPortalDataSource(db).fetch_snapshot(user.id)
    return [
        {
            "student": s.model_dump(),
            "summary": compute_student_progress(
                s, snap.lessons_for(s), snap.completions_for(s), snap.achievements_for(s)
            ).model_dump(),
        }
        for s in snap.students
    ]
