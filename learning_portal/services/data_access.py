from __future__ import annotations

"""
learning_portal/services/data_access.py

Data access port for the portal:
- PortalDataSource: the narrow read contract the progress engine needs
- SqlPortalDataSource: SQLAlchemy implementation plus the write actions
  behind the screens (add student, complete lesson, notifications)

Reads never raise on backend failure: the error is logged and an empty
result is returned, which the engine turns into zero-valued summaries.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Tuple, runtime_checkable

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from learning_portal.models.entities import (
    Achievement,
    Guardian,
    Lesson,
    Notification,
    Progress,
    Student,
)
from learning_portal.models.schemas import (
    AchievementRecord,
    ChildIn,
    CompletionRecord,
    LessonRecord,
    NotificationRecord,
    NotificationType,
    StudentRecord,
    StudentUpdate,
)
from learning_portal.services.progress import compute_student_progress

log = logging.getLogger(__name__)


@runtime_checkable
class PortalDataSource(Protocol):
    def fetch_students(self, guardian_id: int) -> List[StudentRecord]: ...
    def fetch_lessons(self, grade: int) -> List[LessonRecord]: ...
    def fetch_completions(self, student_id: int) -> List[CompletionRecord]: ...
    def fetch_achievements(self, student_id: int) -> List[AchievementRecord]: ...
    def fetch_notifications(self, guardian_id: int) -> List[NotificationRecord]: ...
    def mark_notification_read(self, notification_id: int) -> bool: ...
    def delete_notification(self, notification_id: int) -> bool: ...


@dataclass
class FamilySnapshot:
    """Everything the dashboard needs, fetched up front."""
    students: List[StudentRecord] = field(default_factory=list)
    lessons_by_grade: Dict[int, List[LessonRecord]] = field(default_factory=dict)
    completions_by_student: Dict[int, List[CompletionRecord]] = field(default_factory=dict)
    achievements_by_student: Dict[int, List[AchievementRecord]] = field(default_factory=dict)

    def lessons_for(self, student: StudentRecord) -> List[LessonRecord]:
        return self.lessons_by_grade.get(student.grade, [])

    def completions_for(self, student: StudentRecord) -> List[CompletionRecord]:
        return self.completions_by_student.get(student.id, [])

    def achievements_for(self, student: StudentRecord) -> List[AchievementRecord]:
        return self.achievements_by_student.get(student.id, [])


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _lesson_record(lesson: Optional[Lesson]) -> Optional[LessonRecord]:
    if lesson is None:
        return None
    return LessonRecord.model_validate(lesson)


class SqlPortalDataSource:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch_guardian(self, guardian_id: int) -> Optional[Guardian]:
        try:
            return self.db.get(Guardian, guardian_id)
        except SQLAlchemyError as e:
            log.error("[data] guardian %s fetch failed: %s", guardian_id, e, exc_info=True)
            return None

    def _query_students(self, guardian_id: int) -> List[StudentRecord]:
        rows = self.db.scalars(
            select(Student).where(Student.guardian_id == guardian_id).order_by(Student.id)
        ).all()
        return [StudentRecord.model_validate(s) for s in rows]

    def _query_lessons(self, grade: int) -> List[LessonRecord]:
        rows = self.db.scalars(
            select(Lesson).where(Lesson.grade == grade).order_by(Lesson.id)
        ).all()
        return [LessonRecord.model_validate(l) for l in rows]

    def _query_completions(self, student_id: int) -> List[CompletionRecord]:
        rows = self.db.execute(
            select(Progress, Lesson, Student.name)
            .join(Student, Progress.student_id == Student.id)
            .outerjoin(Lesson, Progress.lesson_id == Lesson.id)
            .where(Progress.student_id == student_id)
            .order_by(Progress.id)
        ).all()
        return [
            CompletionRecord(
                id=p.id,
                student_id=p.student_id,
                lesson_id=p.lesson_id,
                completed=bool(p.completed),
                score=p.score,
                completed_at=p.completed_at,
                student_name=name,
                lesson=_lesson_record(lesson),
            )
            for p, lesson, name in rows
        ]

    def _query_achievements(self, student_id: int) -> List[AchievementRecord]:
        rows = self.db.execute(
            select(Achievement, Student.name)
            .join(Student, Achievement.student_id == Student.id)
            .where(Achievement.student_id == student_id)
            .order_by(Achievement.earned_at.desc())
        ).all()
        return [
            AchievementRecord(
                id=a.id,
                student_id=a.student_id,
                student_name=name,
                name=a.name,
                description=a.description,
                earned_at=a.earned_at,
            )
            for a, name in rows
        ]

    def fetch_students(self, guardian_id: int) -> List[StudentRecord]:
        try:
            return self._query_students(guardian_id)
        except SQLAlchemyError as e:
            log.error("[data] students fetch failed for guardian %s: %s", guardian_id, e, exc_info=True)
            return []

    def get_student(self, guardian_id: int, student_id: int) -> Optional[StudentRecord]:
        """The student, only if it belongs to this guardian."""
        try:
            s = self.db.get(Student, student_id)
        except SQLAlchemyError as e:
            log.error("[data] student %s fetch failed: %s", student_id, e, exc_info=True)
            return None
        if s is None or s.guardian_id != guardian_id:
            return None
        return StudentRecord.model_validate(s)

    def fetch_lessons(self, grade: int) -> List[LessonRecord]:
        try:
            return self._query_lessons(grade)
        except SQLAlchemyError as e:
            log.error("[data] lessons fetch failed for grade %s: %s", grade, e, exc_info=True)
            return []

    def fetch_completions(self, student_id: int) -> List[CompletionRecord]:
        try:
            return self._query_completions(student_id)
        except SQLAlchemyError as e:
            log.error("[data] completions fetch failed for student %s: %s", student_id, e, exc_info=True)
            return []

    def fetch_achievements(self, student_id: int) -> List[AchievementRecord]:
        try:
            return self._query_achievements(student_id)
        except SQLAlchemyError as e:
            log.error("[data] achievements fetch failed for student %s: %s", student_id, e, exc_info=True)
            return []

    def fetch_notifications(self, guardian_id: int) -> List[NotificationRecord]:
        try:
            rows = self.db.scalars(
                select(Notification)
                .where(Notification.guardian_id == guardian_id)
                .order_by(Notification.created_at.desc(), Notification.id.desc())
            ).all()
        except SQLAlchemyError as e:
            log.error("[data] notifications fetch failed for guardian %s: %s", guardian_id, e, exc_info=True)
            return []
        return [NotificationRecord.model_validate(n) for n in rows]

    def fetch_snapshot(self, guardian_id: int) -> FamilySnapshot:
        """
        Gather the whole family in one go.

        Any failed read discards everything gathered so far and returns an
        empty snapshot, never a mix of real and missing data.
        """
        try:
            snap = FamilySnapshot(students=self._query_students(guardian_id))
            for s in snap.students:
                if s.grade not in snap.lessons_by_grade:
                    snap.lessons_by_grade[s.grade] = self._query_lessons(s.grade)
                snap.completions_by_student[s.id] = self._query_completions(s.id)
                snap.achievements_by_student[s.id] = self._query_achievements(s.id)
        except SQLAlchemyError as e:
            log.error("[data] snapshot unavailable for guardian %s: %s", guardian_id, e, exc_info=True)
            return FamilySnapshot()
        return snap

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _owned_notification(self, notification_id: int, guardian_id: Optional[int]) -> Optional[Notification]:
        n = self.db.get(Notification, notification_id)
        if n is None:
            return None
        if guardian_id is not None and n.guardian_id != guardian_id:
            return None
        return n

    def mark_notification_read(self, notification_id: int, guardian_id: Optional[int] = None) -> bool:
        n = self._owned_notification(notification_id, guardian_id)
        if n is None:
            return False
        if not n.read:
            n.read = True
            self.db.commit()
        return True

    def mark_all_notifications_read(self, guardian_id: int) -> int:
        res = self.db.execute(
            update(Notification)
            .where(Notification.guardian_id == guardian_id, Notification.read.is_(False))
            .values(read=True)
        )
        self.db.commit()
        return res.rowcount or 0

    def delete_notification(self, notification_id: int, guardian_id: Optional[int] = None) -> bool:
        n = self._owned_notification(notification_id, guardian_id)
        if n is None:
            return False
        self.db.delete(n)
        self.db.commit()
        return True

    def create_notification(
        self,
        guardian_id: int,
        type: NotificationType,
        title: str,
        message: str,
        now: Optional[datetime] = None,
    ) -> NotificationRecord:
        n = Notification(
            guardian_id=guardian_id,
            type=NotificationType(type).value,
            title=title,
            message=message,
            created_at=now or _utcnow(),
            read=False,
        )
        self.db.add(n)
        self.db.commit()
        self.db.refresh(n)
        return NotificationRecord.model_validate(n)

    # ------------------------------------------------------------------
    # Students & progress
    # ------------------------------------------------------------------

    def add_student(self, guardian_id: int, child: ChildIn) -> StudentRecord:
        s = Student(
            guardian_id=guardian_id,
            name=child.name.strip(),
            age=child.age,
            grade=child.grade,
            photo=child.photo,
            progress=0,
        )
        self.db.add(s)
        self.db.commit()
        self.db.refresh(s)
        log.info("[data] guardian %s added student %s (grade %s)", guardian_id, s.id, s.grade)
        return StudentRecord.model_validate(s)

    def update_student(self, student_id: int, changes: StudentUpdate) -> Optional[StudentRecord]:
        s = self.db.get(Student, student_id)
        if s is None:
            return None
        changed = False
        if changes.name is not None:
            s.name = changes.name.strip()
            changed = True
        if changes.age is not None:
            s.age = changes.age
            changed = True
        if changed:
            self.db.add(s); self.db.commit(); self.db.refresh(s)
        return StudentRecord.model_validate(s)

    def get_lesson(self, lesson_id: int) -> Optional[LessonRecord]:
        return _lesson_record(self.db.get(Lesson, lesson_id))

    def recompute_student_progress(self, student_id: int) -> int:
        """Recompute the stored progress percentage from the completion rows."""
        s = self.db.get(Student, student_id)
        if s is None:
            return 0
        record = StudentRecord.model_validate(s)
        summary = compute_student_progress(
            record,
            self.fetch_lessons(record.grade),
            self.fetch_completions(record.id),
        )
        if s.progress != summary.percent:
            s.progress = summary.percent
            self.db.commit()
        return summary.percent

    def record_completion(
        self,
        student_id: int,
        lesson_id: int,
        score: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[Progress, bool]:
        """
        Mark a lesson done for a student.

        Returns the completion row and whether it was created. Completions
        are append-only; completing an already-completed lesson returns the
        existing row unchanged.
        """
        existing = self.db.scalar(
            select(Progress).where(
                Progress.student_id == student_id,
                Progress.lesson_id == lesson_id,
                Progress.completed.is_(True),
            )
        )
        if existing is not None:
            return existing, False

        when = now or _utcnow()
        row = Progress(
            student_id=student_id,
            lesson_id=lesson_id,
            completed=True,
            score=score,
            completed_at=when,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)

        self.recompute_student_progress(student_id)

        student = self.db.get(Student, student_id)
        lesson = self.db.get(Lesson, lesson_id)
        if student is not None:
            day = (lesson.day if lesson else None) or "today's"
            subject = (lesson.subject_name if lesson else None) or "lesson"
            self.create_notification(
                student.guardian_id,
                NotificationType.SUCCESS,
                "Lesson Completed",
                f"{student.name} completed {day} {subject} lesson",
                now=when,
            )
        return row, True

    def award_achievement(
        self,
        student_id: int,
        name: str,
        description: str = "",
        now: Optional[datetime] = None,
    ) -> Optional[AchievementRecord]:
        """Record a badge for a student and tell the guardian about it."""
        student = self.db.get(Student, student_id)
        if student is None:
            return None
        when = now or _utcnow()
        a = Achievement(student_id=student_id, name=name, description=description, earned_at=when)
        self.db.add(a)
        self.db.commit()
        self.db.refresh(a)
        log.info("[data] student %s earned %r", student_id, name)

        self.create_notification(
            student.guardian_id,
            NotificationType.SUCCESS,
            "Achievement Unlocked",
            f'{student.name} earned the "{name}" badge',
            now=when,
        )
        record = AchievementRecord.model_validate(a)
        record.student_name = student.name
        return record
