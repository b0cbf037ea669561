from __future__ import annotations

"""
learning_portal/services/curriculum.py

Static content-tree metadata (grades, semesters, weeks, days and the two
lesson slots of each day) decorated with the unlock policy from
services.progress.
"""

from typing import Any, List

from learning_portal.models.schemas import DayNode, GradeNode, SemesterNode, StudentRecord, WeekNode
from learning_portal.services.progress import (
    MAX_GRADE,
    is_day_unlocked,
    is_grade_unlocked,
    is_semester_unlocked,
    is_week_unlocked,
)

SEMESTERS_PER_GRADE = 3
WEEKS_PER_SEMESTER = 13
REGULAR_WEEKS = 11  # week 12 is revision, week 13 is the test week

DAY_NAMES: List[str] = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
FIXED_SUBJECT = "Quran"
GRADE_SUBJECTS: List[str] = ["Hadis", "Fiqh", "Sira", "Arabic", "Zikr", "Akhlaq"]


def week_type(week: int) -> str:
    if week <= REGULAR_WEEKS:
        return "regular"
    if week == REGULAR_WEEKS + 1:
        return "revision"
    return "test"


def week_label(week: int) -> str:
    kind = week_type(week)
    if kind == "regular":
        return f"Week {week}"
    if kind == "revision":
        return "Revision Week"
    return "Test Week"


def day_subjects(day_index: int) -> List[str]:
    """Two slots per day: the fixed Quran lesson and the day's grade subject."""
    return [FIXED_SUBJECT, GRADE_SUBJECTS[day_index % len(GRADE_SUBJECTS)]]


def day_index_of(day: str) -> int:
    """Position of a weekday name in the schedule, -1 if it is not a school day."""
    try:
        return DAY_NAMES.index(day.strip().capitalize())
    except ValueError:
        return -1


def build_grade_tree(student: Any, entitled: bool = False) -> List[GradeNode]:
    student = student if isinstance(student, StudentRecord) else StudentRecord.model_validate(student)
    return [
        GradeNode(
            grade=g,
            unlocked=is_grade_unlocked(g, student, entitled=entitled),
            current=(g == student.grade),
        )
        for g in range(1, MAX_GRADE + 1)
    ]


def build_semester_tree(entitled: bool = False) -> List[SemesterNode]:
    return [
        SemesterNode(
            semester=s,
            unlocked=is_semester_unlocked(s, entitled=entitled),
            week_count=WEEKS_PER_SEMESTER,
        )
        for s in range(1, SEMESTERS_PER_GRADE + 1)
    ]


def build_week_tree() -> List[WeekNode]:
    return [
        WeekNode(week=w, type=week_type(w), label=week_label(w), unlocked=is_week_unlocked(w))
        for w in range(1, WEEKS_PER_SEMESTER + 1)
    ]


def build_week_schedule(week: int) -> List[DayNode]:
    return [
        DayNode(day=name, day_index=i, subjects=day_subjects(i), unlocked=is_day_unlocked(week, i))
        for i, name in enumerate(DAY_NAMES)
    ]
