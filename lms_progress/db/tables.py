"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in lms_progress/models/.
Repos convert between rows and dataclasses; nothing outside
lms_progress/repos/ touches a Row class directly.

Timestamps are integer epoch seconds, ids are autoincrement integers
(the certificate number embeds zero-padded course and student ids).
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from lms_progress.db.engine import Base

# --- Course catalog ---


class CourseRow(Base):
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    intelligent_progress_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    teacher_id: Mapped[int | None] = mapped_column(Integer, nullable=True)


class CourseUnitRow(Base):
    __tablename__ = "course_units"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class CourseModuleRow(Base):
    __tablename__ = "course_modules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id"), nullable=False)
    unit_id: Mapped[int | None] = mapped_column(
        ForeignKey("course_units.id"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class ModuleComponentRow(Base):
    __tablename__ = "module_components"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    module_id: Mapped[int] = mapped_column(
        ForeignKey("course_modules.id"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    type: Mapped[str] = mapped_column(
        String(32), nullable=False, default="content"
    )  # content|video|reading|interactive
    is_mandatory: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class QuizRow(Base):
    __tablename__ = "quizzes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    module_id: Mapped[int] = mapped_column(
        ForeignKey("course_modules.id"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    max_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    passing_score: Mapped[float] = mapped_column(Float, nullable=False, default=70.0)
    is_mandatory: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class QuizQuestionRow(Base):
    __tablename__ = "quiz_questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    quiz_id: Mapped[int] = mapped_column(ForeignKey("quizzes.id"), nullable=False)
    type: Mapped[str] = mapped_column(
        String(32), nullable=False
    )  # multiple_choice|true_false|short_answer|essay
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    correct_answers: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    points: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class CourseActivityRow(Base):
    __tablename__ = "course_activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    max_score: Mapped[float] = mapped_column(Float, nullable=False, default=100.0)
    weight: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    is_mandatory: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


# --- Enrollment and progress ---


class EnrollmentRow(Base):
    __tablename__ = "enrollments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id"), nullable=False)
    student_id: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="active"
    )  # active|completed|dropped
    progress_percentage: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0
    )
    enrolled_at: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dropped_at: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (UniqueConstraint("course_id", "student_id"),)


class ProgressRecordRow(Base):
    __tablename__ = "progress_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    enrollment_id: Mapped[int] = mapped_column(
        ForeignKey("enrollments.id"), nullable=False
    )
    type: Mapped[str] = mapped_column(
        String(32), nullable=False
    )  # component|quiz|activity
    reference_id: Mapped[int] = mapped_column(Integer, nullable=False)
    module_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    component_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    started_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    completed_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    time_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score: Mapped[float | None] = mapped_column(Float, nullable=True)

    __table_args__ = (UniqueConstraint("enrollment_id", "type", "reference_id"),)


class UnitProgressBreakpointRow(Base):
    __tablename__ = "unit_progress_breakpoints"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    enrollment_id: Mapped[int] = mapped_column(
        ForeignKey("enrollments.id"), nullable=False
    )
    unit_id: Mapped[int] = mapped_column(ForeignKey("course_units.id"), nullable=False)
    breakpoint_percentage: Mapped[int] = mapped_column(
        Integer, nullable=False
    )  # 25|50|75|100
    scroll_progress: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    activities_progress: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0
    )
    combined_progress: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    intelligent_progress_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    reached_at: Mapped[int] = mapped_column(Integer, nullable=False)
    # "metadata" is reserved on declarative classes
    metadata_json: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )

    __table_args__ = (
        UniqueConstraint("enrollment_id", "unit_id", "breakpoint_percentage"),
    )


# --- Assessments ---


class QuizAttemptRow(Base):
    __tablename__ = "quiz_attempts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    quiz_id: Mapped[int] = mapped_column(ForeignKey("quizzes.id"), nullable=False)
    student_id: Mapped[int] = mapped_column(Integer, nullable=False)
    enrollment_id: Mapped[int] = mapped_column(
        ForeignKey("enrollments.id"), nullable=False
    )
    attempt_number: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="in_progress"
    )  # in_progress|completed|abandoned
    started_at: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    score: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_points: Mapped[float | None] = mapped_column(Float, nullable=True)
    percentage: Mapped[float | None] = mapped_column(Float, nullable=True)
    time_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    answers: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    question_scores: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict
    )

    __table_args__ = (UniqueConstraint("quiz_id", "student_id", "attempt_number"),)


class ActivitySubmissionRow(Base):
    __tablename__ = "activity_submissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    activity_id: Mapped[int] = mapped_column(
        ForeignKey("course_activities.id"), nullable=False
    )
    student_id: Mapped[int] = mapped_column(Integer, nullable=False)
    enrollment_id: Mapped[int] = mapped_column(
        ForeignKey("enrollments.id"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="pending"
    )  # pending|submitted|graded|returned
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    score: Mapped[float | None] = mapped_column(Float, nullable=True)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    submitted_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    graded_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    graded_by: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (UniqueConstraint("activity_id", "student_id"),)


# --- Certificates ---


class CertificateRow(Base):
    """No unique constraint on (enrollment_id, type): an invalidated
    certificate stays as an audit row next to its replacement."""

    __tablename__ = "certificates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    enrollment_id: Mapped[int] = mapped_column(
        ForeignKey("enrollments.id"), nullable=False
    )
    student_id: Mapped[int] = mapped_column(Integer, nullable=False)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id"), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)  # virtual|complete
    certificate_number: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False
    )
    issued_at: Mapped[int] = mapped_column(Integer, nullable=False)
    final_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    course_progress: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    interactive_average: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0
    )
    activities_average: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0
    )
    is_valid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    invalidation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_path: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    metadata_json: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )

    __table_args__ = (Index("ix_certificates_enrollment_type", "enrollment_id", "type"),)


# --- Configuration ---


class SystemSettingRow(Base):
    __tablename__ = "system_settings"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(
        String(16), nullable=False, default="string"
    )  # string|integer|float|boolean|json
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
