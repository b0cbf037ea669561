from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


# ---------------------------------------------------------------------------
# Records read from the data source (engine inputs)
# ---------------------------------------------------------------------------

class StudentRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    age: int = 0
    grade: int = 1
    progress: int = 0
    photo: str = "👦"


class LessonRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    grade: Optional[int] = None
    semester_number: Optional[int] = None
    week_number: Optional[int] = None
    day: Optional[str] = None
    subject_name: Optional[str] = None


class CompletionRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    student_id: Optional[int] = None
    lesson_id: Optional[int] = None
    completed: bool = False
    score: Optional[float] = None
    completed_at: Optional[datetime] = None
    # joined context used by the activity feed
    student_name: Optional[str] = None
    lesson: Optional[LessonRecord] = None


class AchievementRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    student_id: Optional[int] = None
    student_name: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    earned_at: Optional[datetime] = None


class NotificationType(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    REMINDER = "reminder"
    WARNING = "warning"


class NotificationRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: NotificationType = NotificationType.INFO
    title: str
    message: str = ""
    created_at: datetime
    read: bool = False


# ---------------------------------------------------------------------------
# Engine outputs
# ---------------------------------------------------------------------------

class ProgressSummary(BaseModel):
    percent: int = 0
    weekly_goal_percent: int = 0
    achievement_count: int = 0
    rank: str = "F"
    completed_count: int = 0
    total_lessons: int = 0
    skipped_records: int = 0


class ActivityItem(BaseModel):
    student_name: str
    subject_name: str
    lesson_label: str
    relative_time: str


class UpcomingItem(BaseModel):
    student_name: str
    subject_name: str
    lesson_label: str
    date_label: str


class AchievementItem(BaseModel):
    student_name: str
    achievement: str
    relative_time: str


# ---------------------------------------------------------------------------
# API payloads
# ---------------------------------------------------------------------------

class ChildIn(BaseModel):
    name: str = Field(min_length=1)
    age: int = Field(ge=1, le=25)
    grade: int = Field(default=1, ge=1, le=10)
    photo: str = "👦"


class StudentUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    age: Optional[int] = Field(default=None, ge=1, le=25)


class StudentOut(BaseModel):
    id: int
    name: str
    age: int
    grade: int
    progress: int
    photo: str


class StudentProgressOut(BaseModel):
    student: StudentOut
    summary: ProgressSummary


class CompletionIn(BaseModel):
    score: Optional[float] = Field(default=None, ge=0, le=100)


class AchievementIn(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: str = ""


class CompletionOut(BaseModel):
    id: int
    lesson_id: int
    completed: bool
    score: Optional[float]
    completed_at: datetime
    student_progress: int


class RegistrationIn(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str
    password: str
    confirm_password: str
    role: Optional[str] = None
    location: Optional[str] = None
    languages: List[str] = Field(default_factory=list)
    quran_level: Optional[str] = None
    children: List[ChildIn] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def _valid_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not _EMAIL_RE.match(v):
            raise ValueError("Invalid email address")
        return v

    @field_validator("password")
    @classmethod
    def _password_length(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v

    @model_validator(mode="after")
    def _passwords_match(self) -> "RegistrationIn":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self

    @property
    def full_name(self) -> str:
        return f"{self.first_name.strip()} {self.last_name.strip()}"


class LoginIn(BaseModel):
    email: str
    password: str


class TokenOut(BaseModel):
    token: str
    guardian_id: int


class CurrentUser(BaseModel):
    id: int
    email: str


class NotificationOut(BaseModel):
    id: int
    type: NotificationType
    title: str
    message: str
    created_at: datetime
    read: bool
    relative_time: str


class NotificationList(BaseModel):
    unread_count: int
    notifications: List[NotificationOut]


# ---------------------------------------------------------------------------
# Content tree
# ---------------------------------------------------------------------------

class GradeNode(BaseModel):
    grade: int
    unlocked: bool
    current: bool


class SemesterNode(BaseModel):
    semester: int
    unlocked: bool
    week_count: int


class WeekNode(BaseModel):
    week: int
    type: str
    label: str
    unlocked: bool


class DayNode(BaseModel):
    day: str
    day_index: int
    subjects: List[str]
    unlocked: bool


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

class DashboardOut(BaseModel):
    guardian_name: str
    overall_progress: int
    active_students: int
    lessons_this_week: int
    recent_activity: List[ActivityItem]
    upcoming_activity: List[UpcomingItem]
    recent_achievements: List[AchievementItem]
