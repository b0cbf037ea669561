from __future__ import annotations

"""
learning_portal/services/progress.py

Progress aggregation engine:
- completion percentage, weekly goal, rank per student
- family-wide overall progress
- unlock predicates for the grade / semester / week / day tree
- "time ago" labels and the recent / upcoming activity feeds

Every function here is pure: no database access, no clock reads. Callers
pass the fetched snapshot and `now` explicitly.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel

from learning_portal.models.schemas import (
    AchievementItem,
    AchievementRecord,
    ActivityItem,
    CompletionRecord,
    LessonRecord,
    NotificationRecord,
    ProgressSummary,
    StudentRecord,
    UpcomingItem,
)

log = logging.getLogger(__name__)

MAX_GRADE = 10
DEFAULT_RECENT_LIMIT = 5
DEFAULT_UPCOMING_LIMIT = 3
WEEKLY_GOAL_STEP = 10  # percent credited per completed lesson
CURRENT_WEEKS = 4  # weeks counted as "this week" on the home screen

# (lower bound, rank), checked top-down
RANK_THRESHOLDS: Tuple[Tuple[int, str], ...] = (
    (90, "A+"),
    (80, "A"),
    (70, "B+"),
    (60, "B"),
    (50, "C+"),
    (40, "C"),
    (30, "D"),
)
LOWEST_RANK = "F"

_M = TypeVar("_M", bound=BaseModel)


# --- helpers ---
def _coerce(model: Type[_M], item: Any) -> _M:
    if isinstance(item, model):
        return item
    return model.model_validate(item)


def _coerce_all(model: Type[_M], items: Optional[Iterable[Any]]) -> List[_M]:
    return [_coerce(model, it) for it in (items or [])]


def _clamp(value: int, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, value))


def _percent(part: int, whole: int) -> int:
    """Half-up rounded percentage, clamped to 0..100; 0 when whole is 0."""
    if whole <= 0:
        return 0
    return _clamp((200 * part + whole) // (2 * whole))


def _as_utc(ts: datetime) -> datetime:
    # naive timestamps are stored as UTC
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _lesson_id_of(rec: CompletionRecord) -> Optional[int]:
    if rec.lesson_id is not None:
        return rec.lesson_id
    if rec.lesson is not None:
        return rec.lesson.id
    return None


def _is_well_formed(rec: CompletionRecord) -> bool:
    # a completion must say when it happened
    return not (rec.completed and rec.completed_at is None)


# --- rank ---
def rank_for(percent: int) -> str:
    for lower, rank in RANK_THRESHOLDS:
        if percent >= lower:
            return rank
    return LOWEST_RANK


# --- per-student summary ---
def compute_student_progress(
    student: Any,
    lesson_records: Sequence[Any],
    completion_records: Sequence[Any],
    achievements: Sequence[Any] = (),
) -> ProgressSummary:
    """
    Summarise one student's progress.

    `lesson_records` is taken as the student's grade catalogue as-is; the
    engine does not filter it. Malformed completion records (completed
    without a timestamp) are skipped and counted.
    """
    student = _coerce(StudentRecord, student)
    lessons = _coerce_all(LessonRecord, lesson_records)
    completions = _coerce_all(CompletionRecord, completion_records)
    earned = _coerce_all(AchievementRecord, achievements)

    skipped = 0
    completed = 0
    for rec in completions:
        if not _is_well_formed(rec):
            skipped += 1
            continue
        if rec.completed:
            completed += 1

    if skipped:
        log.warning("[progress] student=%s skipped %d malformed completion record(s)", student.id, skipped)

    total = len(lessons)
    percent = _percent(completed, total)
    return ProgressSummary(
        percent=percent,
        weekly_goal_percent=_clamp(completed * WEEKLY_GOAL_STEP),
        achievement_count=len(earned),
        rank=rank_for(percent),
        completed_count=completed,
        total_lessons=total,
        skipped_records=skipped,
    )


def compute_overall_progress(summaries: Iterable[ProgressSummary]) -> int:
    """Family-wide percentage across every student's catalogue."""
    completed = 0
    total = 0
    for s in summaries:
        completed += s.completed_count
        total += s.total_lessons
    return _percent(completed, total)


# --- unlock policy ---
# Positional rules only; completion does not open the next unit yet.
def is_grade_unlocked(grade: int, student: Any, entitled: bool = False) -> bool:
    if grade < 1 or grade > MAX_GRADE:
        return False
    if entitled:
        return True
    return grade <= _coerce(StudentRecord, student).grade


def is_semester_unlocked(semester: int, entitled: bool = False) -> bool:
    if entitled and semester >= 1:
        return True
    return semester == 1


def is_week_unlocked(week: int) -> bool:
    return week == 1


def is_day_unlocked(week: int, day_index: int) -> bool:
    return week == 1 and day_index == 0


# --- time labels ---
def format_time_ago(timestamp: datetime, now: datetime, date_format: Optional[str] = None) -> str:
    ts = _as_utc(timestamp)
    seconds = (_as_utc(now) - ts).total_seconds()
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if hours < 1:
        return "Just now"
    if hours < 24:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    if date_format:
        return ts.strftime(date_format)
    return f"{ts.month}/{ts.day}/{ts.year}"


# --- feeds ---
def _day_and_week(lesson: Optional[LessonRecord]) -> Tuple[str, int]:
    day = (lesson.day if lesson else None) or "Lesson"
    week = (lesson.week_number if lesson else None) or 1
    return day, week


def build_recent_activity(
    completion_records: Sequence[Any],
    now: datetime,
    limit: int = DEFAULT_RECENT_LIMIT,
) -> List[ActivityItem]:
    completions = _coerce_all(CompletionRecord, completion_records)

    done: List[CompletionRecord] = []
    skipped = 0
    for rec in completions:
        if not rec.completed:
            continue
        if not _is_well_formed(rec):
            skipped += 1
            continue
        done.append(rec)
    if skipped:
        log.warning("[activity] skipped %d malformed completion record(s)", skipped)

    done.sort(key=lambda r: _as_utc(r.completed_at), reverse=True)

    out: List[ActivityItem] = []
    for rec in done[: max(0, limit)]:
        lesson = rec.lesson
        out.append(ActivityItem(
            student_name=rec.student_name or "Student",
            subject_name=(lesson.subject_name if lesson else None) or "Subject",
            lesson_label="%s (Week %d)" % _day_and_week(lesson),
            relative_time=format_time_ago(rec.completed_at, now),
        ))
    return out


def build_upcoming_activity(
    lesson_records: Sequence[Any],
    completion_records: Sequence[Any],
    limit: int = DEFAULT_UPCOMING_LIMIT,
    student_name: Optional[str] = None,
) -> List[UpcomingItem]:
    """Lessons not yet completed, in catalogue order."""
    lessons = _coerce_all(LessonRecord, lesson_records)
    completions = _coerce_all(CompletionRecord, completion_records)

    # the timestamp is irrelevant here; any completed row closes its lesson
    completed_ids = {
        _lesson_id_of(c) for c in completions
        if c.completed and _lesson_id_of(c) is not None
    }

    out: List[UpcomingItem] = []
    for lesson in lessons:
        if len(out) >= limit:
            break
        if lesson.id in completed_ids:
            continue
        out.append(UpcomingItem(
            student_name=student_name or "Student",
            subject_name=lesson.subject_name or "Subject",
            lesson_label="%s - Week %d" % _day_and_week(lesson),
            date_label=f"This {lesson.day}" if lesson.day else "Upcoming",
        ))
    return out


def build_recent_achievements(
    achievements: Sequence[Any],
    now: datetime,
    limit: int = DEFAULT_RECENT_LIMIT,
) -> List[AchievementItem]:
    records = _coerce_all(AchievementRecord, achievements)
    dated = [a for a in records if a.earned_at is not None]
    if len(dated) != len(records):
        log.warning("[achievements] skipped %d record(s) without earned_at", len(records) - len(dated))

    dated.sort(key=lambda a: _as_utc(a.earned_at), reverse=True)
    return [
        AchievementItem(
            student_name=a.student_name or "Student",
            achievement=a.name or a.description or "Achievement",
            relative_time=format_time_ago(a.earned_at, now),
        )
        for a in dated[: max(0, limit)]
    ]


def count_unread(notifications: Iterable[Any]) -> int:
    return sum(1 for n in _coerce_all(NotificationRecord, notifications) if not n.read)


def count_lessons_this_week(lesson_records: Iterable[Any], weeks: int = CURRENT_WEEKS) -> int:
    """Lessons scheduled in the first `weeks` weeks; a missing week reads as week 1."""
    lessons = _coerce_all(LessonRecord, lesson_records)
    return sum(1 for l in lessons if 1 <= (l.week_number or 1) <= weeks)
