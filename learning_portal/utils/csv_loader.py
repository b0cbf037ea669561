# learning_portal/utils/csv_loader.py
from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from sqlalchemy import func, insert, select
from sqlalchemy.orm import Session

from learning_portal.models.entities import Lesson
from learning_portal.services.curriculum import (
    DAY_NAMES,
    SEMESTERS_PER_GRADE,
    WEEKS_PER_SEMESTER,
    day_index_of,
    day_subjects,
)
from learning_portal.services.progress import MAX_GRADE

log = logging.getLogger(__name__)


def _get_first_present(row: dict, *keys: str, default=None):
    """Return row[key] for the first present key (case-sensitive), else default."""
    for k in keys:
        if k in row and row[k] not in (None, ""):
            return row[k]
    return default


def _safe_int(v, default: int = 0) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        try:
            # Sometimes numeric strings come as floats like "3.0"
            return int(float(v))
        except (TypeError, ValueError):
            return default


@dataclass
class _DetectedDialect:
    delimiter: str = ","


def _detect_dialect(sample: str) -> _DetectedDialect:
    lines = sample.splitlines()
    # Prefer tab if tabs exist in the first line (spreadsheets copied as TSV)
    if lines and "\t" in lines[0]:
        return _DetectedDialect(delimiter="\t")
    try:
        sniffer = csv.Sniffer()
        dialect = sniffer.sniff(sample, delimiters=",\t;|")
        return _DetectedDialect(delimiter=dialect.delimiter)
    except csv.Error:
        return _DetectedDialect()


def _read_rows(csv_path: Path) -> list[dict]:
    with csv_path.open("r", newline="", encoding="utf-8") as f:
        head = f.read(4096)
        f.seek(0)
        dialect = _detect_dialect(head)
        reader = csv.DictReader(f, delimiter=dialect.delimiter)
        return list(reader)


def _parse_lesson_row(r: dict) -> Optional[dict]:
    grade = _safe_int(_get_first_present(r, "grade", "Grade", "grade_id"), default=-1)
    if not 1 <= grade <= MAX_GRADE:
        return None
    subject = str(_get_first_present(r, "subject", "Subject", "subject_name", default="")).strip()
    if not subject:
        return None

    semester = _safe_int(_get_first_present(r, "semester", "Semester", "semester_number", default=1), default=1)
    week = _safe_int(_get_first_present(r, "week", "Week", "week_number", default=1), default=1)
    day = str(_get_first_present(r, "day", "Day", default="") or "").strip()
    if day and day_index_of(day) < 0:
        day = ""

    return {
        "grade": grade,
        "semester_number": min(max(semester, 1), SEMESTERS_PER_GRADE),
        "week_number": min(max(week, 1), WEEKS_PER_SEMESTER),
        "day": day.capitalize() or None,
        "subject_name": subject,
    }


def bootstrap_from_csv(db: Session, csv_path: Path) -> int:
    """
    Load the lesson catalogue from a CSV/TSV export. Returns rows inserted.

    Columns (any of the listed spellings):
      - grade / Grade / grade_id                     (1..10, required)
      - subject / Subject / subject_name             (required)
      - semester / Semester / semester_number        (default 1)
      - week / Week / week_number                    (default 1)
      - day / Day                                    (Monday..Saturday, optional)

    Rows with an invalid grade or no subject are skipped. File order is
    kept as the catalogue's creation order.
    """
    if not csv_path.exists():
        log.warning("[seed] lesson CSV not found: %s", csv_path)
        return 0

    rows = _read_rows(csv_path)
    parsed = [p for p in (_parse_lesson_row(r) for r in rows) if p is not None]
    skipped = len(rows) - len(parsed)
    if skipped:
        log.warning("[seed] skipped %d invalid lesson row(s) in %s", skipped, csv_path)

    for p in parsed:
        db.add(Lesson(**p))
    db.commit()
    log.info("[seed] loaded %d lesson(s) from %s", len(parsed), csv_path)
    return len(parsed)


def seed_default_catalogue(db: Session) -> int:
    """Fill an empty lessons table with the standard grade/semester/week/day tree."""
    if db.scalar(select(func.count()).select_from(Lesson)):
        return 0

    rows = []
    for grade in range(1, MAX_GRADE + 1):
        for semester in range(1, SEMESTERS_PER_GRADE + 1):
            for week in range(1, WEEKS_PER_SEMESTER + 1):
                for idx, day in enumerate(DAY_NAMES):
                    for subject in day_subjects(idx):
                        rows.append({
                            "grade": grade,
                            "semester_number": semester,
                            "week_number": week,
                            "day": day,
                            "subject_name": subject,
                        })
    db.execute(insert(Lesson), rows)
    db.commit()
    log.info("[seed] generated default catalogue with %d lesson(s)", len(rows))
    return len(rows)
