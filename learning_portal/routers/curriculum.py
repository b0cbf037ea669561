from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from learning_portal.models.db import get_db
from learning_portal.models.schemas import CurrentUser, DayNode, GradeNode, SemesterNode, StudentRecord, WeekNode
from learning_portal.routers.auth import require_user
from learning_portal.services.curriculum import (
    SEMESTERS_PER_GRADE,
    WEEKS_PER_SEMESTER,
    build_grade_tree,
    build_semester_tree,
    build_week_schedule,
    build_week_tree,
)
from learning_portal.services.data_access import SqlPortalDataSource
from learning_portal.services.progress import (
    MAX_GRADE,
    is_grade_unlocked,
    is_semester_unlocked,
    is_week_unlocked,
)

# Content tree: grade -> semester -> week -> day schedule
router = APIRouter(prefix="/students/{student_id}/grades", tags=["curriculum"])


def _student(db: Session, user: CurrentUser, student_id: int) -> StudentRecord:
    student = SqlPortalDataSource(db).get_student(user.id, student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="student not found")
    return student


def _open_grade(student: StudentRecord, grade: int) -> None:
    if not 1 <= grade <= MAX_GRADE:
        raise HTTPException(status_code=404, detail="grade not found")
    if not is_grade_unlocked(grade, student):
        raise HTTPException(status_code=403, detail=f"grade {grade} is locked")


def _open_semester(semester: int) -> None:
    if not 1 <= semester <= SEMESTERS_PER_GRADE:
        raise HTTPException(status_code=404, detail="semester not found")
    if not is_semester_unlocked(semester):
        raise HTTPException(status_code=403, detail=f"semester {semester} is locked")


def _open_week(week: int) -> None:
    if not 1 <= week <= WEEKS_PER_SEMESTER:
        raise HTTPException(status_code=404, detail="week not found")
    if not is_week_unlocked(week):
        raise HTTPException(status_code=403, detail=f"week {week} is locked")


@router.get("", response_model=List[GradeNode])
def grades(student_id: int, user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    return [n.model_dump() for n in build_grade_tree(_student(db, user, student_id))]


@router.get("/{grade}/semesters", response_model=List[SemesterNode])
def semesters(student_id: int, grade: int, user: CurrentUser = Depends(require_user), db: Session = Depends(get_db)):
    _open_grade(_student(db, user, student_id), grade)
    return [n.model_dump() for n in build_semester_tree()]


@router.get("/{grade}/semesters/{semester}/weeks", response_model=List[WeekNode])
def weeks(
    student_id: int,
    grade: int,
    semester: int,
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    _open_grade(_student(db, user, student_id), grade)
    _open_semester(semester)
    return [n.model_dump() for n in build_week_tree()]


@router.get("/{grade}/semesters/{semester}/weeks/{week}/schedule", response_model=List[DayNode])
def schedule(
    student_id: int,
    grade: int,
    semester: int,
    week: int,
    user: CurrentUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    _open_grade(_student(db, user, student_id), grade)
    _open_semester(semester)
    _open_week(week)
    return [n.model_dump() for n in build_week_schedule(week)]
