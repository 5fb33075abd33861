"""create progress schema

Revision ID: 3b1f0c9d2a41
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b1f0c9d2a41"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _id() -> sa.Column:
    return sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True)


def upgrade() -> None:
    # --- catalog ---
    op.create_table(
        "courses",
        _id(),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("is_published", sa.Boolean(), nullable=False),
        sa.Column("intelligent_progress_enabled", sa.Boolean(), nullable=False),
        sa.Column("teacher_id", sa.Integer(), nullable=True),
    )
    op.create_table(
        "course_units",
        _id(),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
    )
    op.create_table(
        "course_modules",
        _id(),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("unit_id", sa.Integer(), sa.ForeignKey("course_units.id"), nullable=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
    )
    op.create_table(
        "module_components",
        _id(),
        sa.Column(
            "module_id", sa.Integer(), sa.ForeignKey("course_modules.id"), nullable=False
        ),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("is_mandatory", sa.Boolean(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
    )
    op.create_table(
        "quizzes",
        _id(),
        sa.Column(
            "module_id", sa.Integer(), sa.ForeignKey("course_modules.id"), nullable=False
        ),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("max_attempts", sa.Integer(), nullable=False),
        sa.Column("passing_score", sa.Float(), nullable=False),
        sa.Column("is_mandatory", sa.Boolean(), nullable=False),
    )
    op.create_table(
        "quiz_questions",
        _id(),
        sa.Column("quiz_id", sa.Integer(), sa.ForeignKey("quizzes.id"), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("correct_answers", sa.JSON(), nullable=False),
        sa.Column("points", sa.Float(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
    )
    op.create_table(
        "course_activities",
        _id(),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("max_score", sa.Float(), nullable=False),
        sa.Column("weight", sa.Float(), nullable=False),
        sa.Column("is_mandatory", sa.Boolean(), nullable=False),
    )

    # --- enrollment and progress ---
    op.create_table(
        "enrollments",
        _id(),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("progress_percentage", sa.Float(), nullable=False),
        sa.Column("enrolled_at", sa.Integer(), nullable=False),
        sa.Column("completed_at", sa.Integer(), nullable=True),
        sa.Column("dropped_at", sa.Integer(), nullable=True),
        sa.UniqueConstraint("course_id", "student_id"),
    )
    op.create_table(
        "progress_records",
        _id(),
        sa.Column(
            "enrollment_id", sa.Integer(), sa.ForeignKey("enrollments.id"), nullable=False
        ),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("reference_id", sa.Integer(), nullable=False),
        sa.Column("module_id", sa.Integer(), nullable=True),
        sa.Column("component_id", sa.Integer(), nullable=True),
        sa.Column("is_completed", sa.Boolean(), nullable=False),
        sa.Column("started_at", sa.Integer(), nullable=True),
        sa.Column("completed_at", sa.Integer(), nullable=True),
        sa.Column("time_spent", sa.Integer(), nullable=False),
        sa.Column("score", sa.Float(), nullable=True),
        sa.UniqueConstraint("enrollment_id", "type", "reference_id"),
    )
    op.create_table(
        "unit_progress_breakpoints",
        _id(),
        sa.Column(
            "enrollment_id", sa.Integer(), sa.ForeignKey("enrollments.id"), nullable=False
        ),
        sa.Column("unit_id", sa.Integer(), sa.ForeignKey("course_units.id"), nullable=False),
        sa.Column("breakpoint_percentage", sa.Integer(), nullable=False),
        sa.Column("scroll_progress", sa.Float(), nullable=False),
        sa.Column("activities_progress", sa.Float(), nullable=False),
        sa.Column("combined_progress", sa.Float(), nullable=False),
        sa.Column("intelligent_progress_enabled", sa.Boolean(), nullable=False),
        sa.Column("reached_at", sa.Integer(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.UniqueConstraint("enrollment_id", "unit_id", "breakpoint_percentage"),
    )

    # --- assessments ---
    op.create_table(
        "quiz_attempts",
        _id(),
        sa.Column("quiz_id", sa.Integer(), sa.ForeignKey("quizzes.id"), nullable=False),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column(
            "enrollment_id", sa.Integer(), sa.ForeignKey("enrollments.id"), nullable=False
        ),
        sa.Column("attempt_number", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("started_at", sa.Integer(), nullable=False),
        sa.Column("completed_at", sa.Integer(), nullable=True),
        sa.Column("score", sa.Float(), nullable=True),
        sa.Column("total_points", sa.Float(), nullable=True),
        sa.Column("percentage", sa.Float(), nullable=True),
        sa.Column("time_spent", sa.Integer(), nullable=False),
        sa.Column("answers", sa.JSON(), nullable=False),
        sa.Column("question_scores", sa.JSON(), nullable=False),
        sa.UniqueConstraint("quiz_id", "student_id", "attempt_number"),
    )
    op.create_table(
        "activity_submissions",
        _id(),
        sa.Column(
            "activity_id",
            sa.Integer(),
            sa.ForeignKey("course_activities.id"),
            nullable=False,
        ),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column(
            "enrollment_id", sa.Integer(), sa.ForeignKey("enrollments.id"), nullable=False
        ),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("score", sa.Float(), nullable=True),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("submitted_at", sa.Integer(), nullable=True),
        sa.Column("graded_at", sa.Integer(), nullable=True),
        sa.Column("graded_by", sa.Integer(), nullable=True),
        sa.UniqueConstraint("activity_id", "student_id"),
    )

    # --- certificates and settings ---
    op.create_table(
        "certificates",
        _id(),
        sa.Column(
            "enrollment_id", sa.Integer(), sa.ForeignKey("enrollments.id"), nullable=False
        ),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("certificate_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column("issued_at", sa.Integer(), nullable=False),
        sa.Column("final_score", sa.Float(), nullable=False),
        sa.Column("course_progress", sa.Float(), nullable=False),
        sa.Column("interactive_average", sa.Float(), nullable=False),
        sa.Column("activities_average", sa.Float(), nullable=False),
        sa.Column("is_valid", sa.Boolean(), nullable=False),
        sa.Column("invalidation_reason", sa.Text(), nullable=True),
        sa.Column("file_path", sa.String(length=1024), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
    )
    op.create_index(
        "ix_certificates_enrollment_type", "certificates", ["enrollment_id", "type"]
    )
    op.create_table(
        "system_settings",
        sa.Column("key", sa.String(length=128), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("system_settings")
    op.drop_index("ix_certificates_enrollment_type", table_name="certificates")
    for table in (
        "certificates",
        "activity_submissions",
        "quiz_attempts",
        "unit_progress_breakpoints",
        "progress_records",
        "enrollments",
        "course_activities",
        "quiz_questions",
        "quizzes",
        "module_components",
        "course_modules",
        "course_units",
        "courses",
    ):
        op.drop_table(table)
