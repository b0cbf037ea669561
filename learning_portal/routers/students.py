from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from learning_portal.core.config import settings
from learning_portal.models.db import get_db
from learning_portal.models.schemas import (
    AchievementIn,
    AchievementItem,
    AchievementRecord,
    ChildIn,
    CompletionIn,
    CompletionOut,
    CurrentUser,
    StudentOut,
    StudentProgressOut,
    StudentRecord,
    StudentUpdate,
    UpcomingItem,
)
from learning_portal.routers.auth import require_user
from learning_portal.services.curriculum import day_index_of
from learning_portal.services.data_access import SqlPortalDataSource
from learning_portal.services.progress import (
    build_recent_achievements,
    build_upcoming_activity,
    compute_student_progress,
    is_day_unlocked,
    is_grade_unlocked,
    is_semester_unlocked,
    is_week_unlocked,
)

router = APIRouter(prefix="/students", tags=["students"])


def _ensure_student(source: SqlPortalDataSource, user: CurrentUser, student_id: int) -> StudentRecord:
    student = source.get_student(user.id, student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="student not found")
    return student


@router.get("", response_model=List[StudentOut])
def list_students(user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    return [s.model_dump() for s in SqlPortalDataSource(db).fetch_students(user.id)]


@router.post("", response_model=StudentOut, status_code=201)
def add_student(payload: ChildIn, user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    return SqlPortalDataSource(db).add_student(user.id, payload).model_dump()


@router.patch("/{student_id}", response_model=StudentOut)
def update_student(
    student_id: int,
    payload: StudentUpdate,
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    source = SqlPortalDataSource(db)
    _ensure_student(source, user, student_id)
    updated = source.update_student(student_id, payload)
    if updated is None:
        raise HTTPException(status_code=404, detail="student not found")
    return updated.model_dump()


@router.get("/{student_id}/progress", response_model=StudentProgressOut)
def student_progress(student_id: int, user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    source = SqlPortalDataSource(db)
    student = _ensure_student(source, user, student_id)
    summary = compute_student_progress(
        student,
        source.fetch_lessons(student.grade),
        source.fetch_completions(student.id),
        source.fetch_achievements(student.id),
    )
    return {"student": student.model_dump(), "summary": summary.model_dump()}


@router.get("/{student_id}/upcoming", response_model=List[UpcomingItem])
def student_upcoming(student_id: int, user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    source = SqlPortalDataSource(db)
    student = _ensure_student(source, user, student_id)
    items = build_upcoming_activity(
        source.fetch_lessons(student.grade),
        source.fetch_completions(student.id),
        limit=settings.UPCOMING_ACTIVITY_LIMIT,
        student_name=student.name,
    )
    return [it.model_dump() for it in items]


@router.get("/{student_id}/achievements", response_model=List[AchievementItem])
def student_achievements(student_id: int, user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    source = SqlPortalDataSource(db)
    student = _ensure_student(source, user, student_id)
    items = build_recent_achievements(
        source.fetch_achievements(student.id),
        now=datetime.now(timezone.utc),
        limit=settings.RECENT_ACHIEVEMENTS_LIMIT,
    )
    return [it.model_dump() for it in items]


@router.post("/{student_id}/achievements", response_model=AchievementRecord, status_code=201)
def award_achievement(
    student_id: int,
    payload: AchievementIn,
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    source = SqlPortalDataSource(db)
    student = _ensure_student(source, user, student_id)
    record = source.award_achievement(student.id, payload.name.strip(), payload.description.strip())
    if record is None:
        raise HTTPException(status_code=404, detail="student not found")
    return record.model_dump()


@router.post("/{student_id}/lessons/{lesson_id}/complete", response_model=CompletionOut, status_code=201)
def complete_lesson(
    student_id: int,
    lesson_id: int,
    response: Response,
    payload: CompletionIn | None = None,
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    source = SqlPortalDataSource(db)
    student = _ensure_student(source, user, student_id)
    lesson = source.get_lesson(lesson_id)
    if lesson is None:
        raise HTTPException(status_code=404, detail="lesson not found")

    day_index = day_index_of(lesson.day) if lesson.day else 0
    open_ = (
        is_grade_unlocked(lesson.grade or student.grade, student)
        and is_semester_unlocked(lesson.semester_number or 1)
        and is_week_unlocked(lesson.week_number or 1)
        and is_day_unlocked(lesson.week_number or 1, day_index)
    )
    if not open_:
        raise HTTPException(status_code=403, detail="lesson is locked")

    row, created = source.record_completion(student.id, lesson.id, score=payload.score if payload else None)
    if not created:
        response.status_code = 200
    refreshed = source.get_student(user.id, student.id)
    return {
        "id": row.id,
        "lesson_id": row.lesson_id,
        "completed": row.completed,
        "score": row.score,
        "completed_at": row.completed_at,
        "student_progress": refreshed.progress if refreshed else student.progress,
    }
