"""Tests for the lesson catalogue loaders."""

from sqlalchemy import func, select

from learning_portal.models.entities import Lesson
from learning_portal.utils.csv_loader import bootstrap_from_csv, seed_default_catalogue


def test_bootstrap_from_tsv(db, tmp_path):
    path = tmp_path / "lessons.tsv"
    path.write_text(
        "grade\tsemester\tweek\tday\tsubject\n"
        "1\t1\t1\tMonday\tQuran\n"
        "1\t1\t1\tmonday\tHadis\n"
        "1\t1\t2\tFunday\tFiqh\n"
        "12\t1\t1\tMonday\tQuran\n"
        "2\t1\t1\tTuesday\t\n",
        encoding="utf-8",
    )

    assert bootstrap_from_csv(db, path) == 3

    rows = db.scalars(select(Lesson).order_by(Lesson.id)).all()
    assert [(r.grade, r.week_number, r.day, r.subject_name) for r in rows] == [
        (1, 1, "Monday", "Quran"),
        (1, 1, "Monday", "Hadis"),
        (1, 2, None, "Fiqh"),
    ]


def test_bootstrap_accepts_alternate_headers(db, tmp_path):
    path = tmp_path / "lessons.csv"
    path.write_text(
        "Grade,Semester,Week,Day,Subject\n"
        "3,2,4.0,Friday,Zikr\n",
        encoding="utf-8",
    )
    assert bootstrap_from_csv(db, path) == 1
    lesson = db.scalar(select(Lesson))
    assert (lesson.grade, lesson.semester_number, lesson.week_number) == (3, 2, 4)


def test_missing_file(db, tmp_path):
    assert bootstrap_from_csv(db, tmp_path / "nope.csv") == 0


def test_default_catalogue_fills_empty_table_once(db):
    # 10 grades x 3 semesters x 13 weeks x 6 days x 2 slots
    assert seed_default_catalogue(db) == 4680
    assert seed_default_catalogue(db) == 0
    assert db.scalar(select(func.count()).select_from(Lesson)) == 4680
