"""Quiz attempt and activity submission endpoints.

  POST /v1/enrollments/{id}/quizzes/{quiz_id}/attempts             start
  GET  /v1/enrollments/{id}/quizzes/{quiz_id}/attempts             history
  POST /v1/quiz-attempts/{attempt_id}/complete                     grade answers
  POST /v1/quiz-attempts/{attempt_id}/abandon
  POST /v1/enrollments/{id}/activities/{activity_id}/submissions   submit
  POST /v1/submissions/{submission_id}/grade
  POST /v1/submissions/{submission_id}/return                      back for revision
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from lms_progress.api.dependencies import get_services
from lms_progress.api.enrollments import ProgressUpdateOut, progress_update_out
from lms_progress.models.assessment import (
    ActivitySubmission,
    AttemptStatus,
    QuizAttempt,
    SubmissionStatus,
)
from lms_progress.services.container import Services

router = APIRouter(tags=["assessments"])


class AttemptOut(BaseModel):
    id: int
    quiz_id: int
    enrollment_id: int
    attempt_number: int
    status: AttemptStatus
    started_at: int
    completed_at: int | None
    score: float | None
    total_points: float | None
    percentage: float | None
    time_spent: int
    formatted_time_spent: str
    question_scores: dict[str, float | None]


class AnswersIn(BaseModel):
    # question id -> answer; essays may carry free text
    answers: dict[str, Any] = Field(default_factory=dict)


class AttemptResultOut(BaseModel):
    attempt: AttemptOut
    passed: bool
    passing_score: float
    remaining_attempts: int
    update: ProgressUpdateOut


class SubmitIn(BaseModel):
    content: str | None = Field(default=None, max_length=50_000)


class GradeIn(BaseModel):
    score: float = Field(ge=0)
    grader_id: int | None = None
    feedback: str | None = None


class ReturnIn(BaseModel):
    feedback: str | None = None


class SubmissionOut(BaseModel):
    id: int
    activity_id: int
    enrollment_id: int
    status: SubmissionStatus
    score: float | None
    feedback: str | None
    attempts: int
    submitted_at: int | None
    graded_at: int | None
    graded_by: int | None


class GradedSubmissionOut(BaseModel):
    submission: SubmissionOut
    update: ProgressUpdateOut


def _attempt_out(attempt: QuizAttempt) -> AttemptOut:
    return AttemptOut(
        id=attempt.id,
        quiz_id=attempt.quiz_id,
        enrollment_id=attempt.enrollment_id,
        attempt_number=attempt.attempt_number,
        status=attempt.status,
        started_at=attempt.started_at,
        completed_at=attempt.completed_at,
        score=attempt.score,
        total_points=attempt.total_points,
        percentage=attempt.percentage,
        time_spent=attempt.time_spent,
        formatted_time_spent=attempt.formatted_time_spent,
        question_scores=attempt.question_scores,
    )


def _submission_out(submission: ActivitySubmission) -> SubmissionOut:
    return SubmissionOut(
        id=submission.id,
        activity_id=submission.activity_id,
        enrollment_id=submission.enrollment_id,
        status=submission.status,
        score=submission.score,
        feedback=submission.feedback,
        attempts=submission.attempts,
        submitted_at=submission.submitted_at,
        graded_at=submission.graded_at,
        graded_by=submission.graded_by,
    )


# ---- quizzes ----


@router.post(
    "/v1/enrollments/{enrollment_id}/quizzes/{quiz_id}/attempts",
    response_model=AttemptOut,
    status_code=status.HTTP_201_CREATED,
)
def start_attempt(
    enrollment_id: int,
    quiz_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> AttemptOut:
    return _attempt_out(services.quizzes.start_attempt(enrollment_id, quiz_id))


@router.get(
    "/v1/enrollments/{enrollment_id}/quizzes/{quiz_id}/attempts",
    response_model=list[AttemptOut],
)
def list_attempts(
    enrollment_id: int,
    quiz_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> list[AttemptOut]:
    return [_attempt_out(a) for a in services.quizzes.attempts_for(enrollment_id, quiz_id)]


@router.post("/v1/quiz-attempts/{attempt_id}/complete", response_model=AttemptResultOut)
def complete_attempt(
    attempt_id: int,
    body: AnswersIn,
    services: Annotated[Services, Depends(get_services)],
) -> AttemptResultOut:
    result = services.quizzes.complete_attempt(attempt_id, body.answers)
    return AttemptResultOut(
        attempt=_attempt_out(result.attempt),
        passed=result.passed,
        passing_score=result.quiz.passing_score,
        remaining_attempts=result.remaining_attempts,
        update=progress_update_out(result.progress),
    )


@router.post("/v1/quiz-attempts/{attempt_id}/abandon", response_model=AttemptOut)
def abandon_attempt(
    attempt_id: int,
    services: Annotated[Services, Depends(get_services)],
) -> AttemptOut:
    return _attempt_out(services.quizzes.abandon_attempt(attempt_id))


# ---- activities ----


@router.post(
    "/v1/enrollments/{enrollment_id}/activities/{activity_id}/submissions",
    response_model=SubmissionOut,
    status_code=status.HTTP_201_CREATED,
)
def submit_activity(
    enrollment_id: int,
    activity_id: int,
    body: SubmitIn,
    services: Annotated[Services, Depends(get_services)],
) -> SubmissionOut:
    submission = services.activities.submit(enrollment_id, activity_id, body.content)
    return _submission_out(submission)


@router.post("/v1/submissions/{submission_id}/grade", response_model=GradedSubmissionOut)
def grade_submission(
    submission_id: int,
    body: GradeIn,
    services: Annotated[Services, Depends(get_services)],
) -> GradedSubmissionOut:
    graded = services.activities.grade(
        submission_id, body.score, grader_id=body.grader_id, feedback=body.feedback
    )
    return GradedSubmissionOut(
        submission=_submission_out(graded.submission),
        update=progress_update_out(graded.progress),
    )


@router.post("/v1/submissions/{submission_id}/return", response_model=SubmissionOut)
def return_submission(
    submission_id: int,
    body: ReturnIn,
    services: Annotated[Services, Depends(get_services)],
) -> SubmissionOut:
    submission = services.activities.return_for_revision(submission_id, body.feedback)
    return _submission_out(submission)
