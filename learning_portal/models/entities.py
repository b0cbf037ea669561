# learning_portal/models/entities.py
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Integer, String, DateTime, Float, ForeignKey, JSON
from .db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Guardian(Base):
    __tablename__ = "profiles"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=True)
    location = Column(String, nullable=True)
    languages = Column(JSON, nullable=False, default=list)
    quran_level = Column(String, nullable=True)
    status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class AuthSession(Base):
    __tablename__ = "auth_sessions"
    token = Column(String, primary_key=True)
    guardian_id = Column(Integer, ForeignKey("profiles.id"), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    revoked_at = Column(DateTime(timezone=True), nullable=True)


class Student(Base):
    __tablename__ = "students"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    guardian_id = Column(Integer, ForeignKey("profiles.id"), index=True, nullable=False)
    name = Column(String, nullable=False)
    age = Column(Integer, nullable=False)
    grade = Column(Integer, nullable=False, default=1)
    progress = Column(Integer, nullable=False, default=0)
    photo = Column(String, nullable=False, default="👦")


class Lesson(Base):
    __tablename__ = "lessons"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    grade = Column(Integer, index=True, nullable=False)
    semester_number = Column(Integer, nullable=False, default=1)
    week_number = Column(Integer, nullable=False, default=1)
    day = Column(String, nullable=True)
    subject_name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class Progress(Base):
    __tablename__ = "progress"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id"), index=True, nullable=False)
    lesson_id = Column(Integer, ForeignKey("lessons.id"), index=True, nullable=True)
    completed = Column(Boolean, nullable=False, default=False, server_default="0")
    score = Column(Float, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)


class Achievement(Base):
    __tablename__ = "achievements"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id"), index=True, nullable=False)
    name = Column(String, nullable=True)
    description = Column(String, nullable=True)
    earned_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class Notification(Base):
    __tablename__ = "notifications"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    guardian_id = Column(Integer, ForeignKey("profiles.id"), index=True, nullable=False)
    type = Column(String, nullable=False, default="info")
    title = Column(String, nullable=False)
    message = Column(String, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    read = Column(Boolean, nullable=False, default=False, server_default="0")
