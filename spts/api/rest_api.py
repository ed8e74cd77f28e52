"""
REST API implementation for the SPTS platform using FastAPI.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .. import __version__
from ..core.entities import Alert, Enrollment, Student
from ..core.enums import GradeEntryType
from ..core.exceptions import (
    ConcurrencyError, NotFoundError, RangeError, SptsException, StateConflictError, ValidationError
)
from ..core.grading import GradingStrategyFactory
from ..services import AlertService, EvaluationResult, GradeEntryService, GradeEvaluationService, StudentService

logger = logging.getLogger(__name__)

# Most specific first; UnknownScaleError is a ValidationError
ERROR_STATUS = (
    (RangeError, status.HTTP_400_BAD_REQUEST),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (StateConflictError, status.HTTP_409_CONFLICT),
    (ConcurrencyError, status.HTTP_423_LOCKED),
)


def status_for(exc: SptsException) -> int:
    """HTTP status code for a platform exception."""
    for exc_type, code in ERROR_STATUS:
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


# Pydantic models for API
class StudentCreate(BaseModel):
    student_number: str = Field(..., min_length=1, max_length=20)
    full_name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = Field(default=None, pattern=r'^[^@]+@[^@]+\.[^@]+$')


class StudentResponse(BaseModel):
    id: str
    student_number: str
    full_name: str
    email: Optional[str] = None
    gpa: Optional[float] = None
    total_credits: int
    standing: str
    created_at: datetime
    updated_at: datetime
    version: int


class StandingResponse(BaseModel):
    student_id: str
    standing: str
    gpa: Optional[float] = None
    total_credits: int
    can_register: bool
    requires_counseling: bool
    max_credit_hours: int
    required_actions: str


class AlertResponse(BaseModel):
    id: str
    student_id: str
    level: str
    type: str
    message: str
    is_read: bool
    is_resolved: bool
    resolved_by: Optional[str] = None
    created_at: datetime


class EnrollmentCreate(BaseModel):
    student_id: str = Field(..., min_length=1)
    credits: int = Field(..., ge=0, le=30)
    grading_scale: str = Field(..., min_length=1)
    course_code: Optional[str] = Field(default=None, max_length=20)


class EnrollmentResponse(BaseModel):
    id: str
    student_id: str
    course_code: Optional[str] = None
    credits: int
    grading_scale: str
    status: str
    final_score: Optional[float] = None
    letter_grade: Optional[str] = None
    gpa_value: Optional[float] = None
    enrolled_at: datetime
    completed_at: Optional[datetime] = None


class CompleteRequest(BaseModel):
    raw_score: Optional[float] = None


class EvaluationResponse(BaseModel):
    enrollment_id: str
    student_id: str
    grading_scale: str
    score: float
    gpa_value: float
    letter_grade: str
    passing: bool
    student_gpa: Optional[float] = None
    standing: Optional[str] = None


class GradeEntryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    weight: float = 1.0
    raw_score: Optional[float] = None
    parent_id: Optional[str] = None
    entry_type: str = GradeEntryType.COMPONENT.value
    recorded_by: Optional[str] = None
    notes: Optional[str] = None


class ScoreUpdate(BaseModel):
    score: Optional[float] = None
    recorded_by: Optional[str] = None


class CalculateRequest(BaseModel):
    scores: List[float]
    weights: List[float]


class CalculateResponse(BaseModel):
    scale: str
    name: str
    result: float


class SptsRestAPI:
    """REST API implementation for the SPTS platform."""

    def __init__(self, student_service: StudentService, evaluation_service: GradeEvaluationService,
                 grade_entry_service: GradeEntryService, alert_service: AlertService,
                 cors_origins: Optional[List[str]] = None):
        self._student_service = student_service
        self._evaluation_service = evaluation_service
        self._grade_entry_service = grade_entry_service
        self._alert_service = alert_service

        self.app = FastAPI(
            title="SPTS API",
            description="Student performance tracking: grade trees, grading scales and academic standing",
            version=__version__,
            docs_url="/docs",
            redoc_url="/redoc"
        )

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins or ["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self._setup_error_handlers()
        self._setup_routes()

    def _setup_error_handlers(self):
        """Map the platform's exceptions to JSON error responses."""

        @self.app.exception_handler(SptsException)
        async def handle_spts_exception(request: Request, exc: SptsException):
            code = status_for(exc)
            if code >= 500:
                logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
            else:
                logger.info("%s %s rejected (%d): %s", request.method, request.url.path, code, exc.message)
            return JSONResponse(
                status_code=code,
                content={"error": exc.error_code, "message": exc.message, "details": _jsonable(exc.details)}
            )

    def _setup_routes(self):
        """Setup API routes."""

        @self.app.get("/health", response_model=Dict[str, str])
        def health_check():
            """Health check endpoint."""
            return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

        # Student endpoints
        @self.app.post("/students", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
        def create_student(student_data: StudentCreate):
            """Register a new student."""
            student = self._student_service.register_student(
                student_data.student_number, student_data.full_name, student_data.email
            )
            return self._student_to_response(student)

        @self.app.get("/students/{student_id}", response_model=StudentResponse)
        def get_student(student_id: str):
            """Get a student by ID."""
            return self._student_to_response(self._student_service.get_student(student_id))

        @self.app.get("/students/{student_id}/standing", response_model=StandingResponse)
        def get_standing(student_id: str):
            """Get a student's standing and what it allows."""
            student = self._student_service.get_student(student_id)
            policy = self._student_service.standing_policy(student_id)
            return StandingResponse(
                student_id=student.id,
                standing=student.standing.value,
                gpa=student.gpa,
                total_credits=student.total_credits,
                can_register=policy.can_register,
                requires_counseling=policy.requires_counseling,
                max_credit_hours=policy.max_credit_hours,
                required_actions=policy.required_actions
            )

        @self.app.post("/students/{student_id}/graduate", response_model=StudentResponse)
        def graduate_student(student_id: str):
            """Graduate a student who meets the degree requirements."""
            return self._student_to_response(self._student_service.graduate_student(student_id))

        @self.app.get("/students/{student_id}/alerts", response_model=List[AlertResponse])
        def get_student_alerts(student_id: str, unresolved_only: bool = False):
            """List a student's alerts."""
            self._student_service.get_student(student_id)
            alerts = self._alert_service.get_alerts_by_student(student_id, unresolved_only=unresolved_only)
            return [self._alert_to_response(alert) for alert in alerts]

        # Enrollment endpoints
        @self.app.post("/enrollments", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED)
        def create_enrollment(enrollment_data: EnrollmentCreate):
            """Open an enrollment for a student."""
            enrollment = self._evaluation_service.enroll(
                enrollment_data.student_id,
                enrollment_data.credits,
                enrollment_data.grading_scale,
                course_code=enrollment_data.course_code
            )
            return self._enrollment_to_response(enrollment)

        @self.app.get("/enrollments/{enrollment_id}", response_model=EnrollmentResponse)
        def get_enrollment(enrollment_id: str):
            """Get an enrollment by ID."""
            return self._enrollment_to_response(self._evaluation_service.get_enrollment(enrollment_id))

        @self.app.post("/enrollments/{enrollment_id}/complete", response_model=EvaluationResponse)
        def complete_enrollment(enrollment_id: str, request: Optional[CompleteRequest] = None):
            """Finalize an enrollment's grade, from the given score or its grade tree."""
            raw_score = request.raw_score if request is not None else None
            result = self._evaluation_service.complete_enrollment(enrollment_id, raw_score)
            return self._evaluation_to_response(result)

        @self.app.post("/enrollments/{enrollment_id}/withdraw", response_model=EnrollmentResponse)
        def withdraw_enrollment(enrollment_id: str):
            """Withdraw from an enrollment."""
            return self._enrollment_to_response(self._evaluation_service.withdraw_enrollment(enrollment_id))

        # Grade entry endpoints
        @self.app.post("/enrollments/{enrollment_id}/grades", response_model=Dict[str, Any],
                       status_code=status.HTTP_201_CREATED)
        def create_grade_entry(enrollment_id: str, entry_data: GradeEntryCreate):
            """Record a grade entry for an enrollment."""
            node = self._grade_entry_service.create_entry(
                enrollment_id,
                entry_data.name,
                weight=entry_data.weight,
                raw_score=entry_data.raw_score,
                parent_id=entry_data.parent_id,
                entry_type=_parse_entry_type(entry_data.entry_type),
                recorded_by=entry_data.recorded_by,
                notes=entry_data.notes
            )
            return node.to_dict()

        @self.app.get("/enrollments/{enrollment_id}/grades", response_model=Dict[str, Any])
        def get_grade_entries(enrollment_id: str):
            """Get an enrollment's grade tree and the score it aggregates to."""
            return {
                "enrollment_id": enrollment_id,
                "entries": self._grade_entry_service.get_hierarchy(enrollment_id),
                "final_score": self._grade_entry_service.calculate_final_grade(enrollment_id),
                "weights_valid": self._grade_entry_service.validate_weights(enrollment_id),
            }

        @self.app.put("/grades/{entry_id}/score", response_model=Dict[str, Any])
        def update_grade_score(entry_id: str, update: ScoreUpdate):
            """Change the raw score of a grade entry."""
            node = self._grade_entry_service.update_score(entry_id, update.score, update.recorded_by)
            return node.to_dict()

        @self.app.delete("/grades/{entry_id}", response_model=Dict[str, Any])
        def delete_grade_entry(entry_id: str):
            """Delete a grade entry and everything beneath it."""
            removed = self._grade_entry_service.delete_entry(entry_id)
            return {"deleted": removed}

        # Grading scale endpoints
        @self.app.get("/scales", response_model=List[Dict[str, Any]])
        def list_scales():
            """List the supported grading scales."""
            return [
                GradingStrategyFactory.get_strategy(scale).to_dict()
                for scale in GradingStrategyFactory.supported_scales()
            ]

        @self.app.post("/scales/{scale}/calculate", response_model=CalculateResponse)
        def calculate(scale: str, request: CalculateRequest):
            """Combine component scores under a grading scale."""
            strategy = GradingStrategyFactory.get_strategy(scale)
            result = self._evaluation_service.evaluate_components(scale, request.scores, request.weights)
            return CalculateResponse(scale=strategy.scale.value, name=strategy.name, result=result)

    def _student_to_response(self, student: Student) -> StudentResponse:
        """Convert student entity to response model."""
        return StudentResponse(
            id=student.id,
            student_number=student.student_number,
            full_name=student.full_name,
            email=student.email,
            gpa=student.gpa,
            total_credits=student.total_credits,
            standing=student.standing.value,
            created_at=student.created_at,
            updated_at=student.updated_at,
            version=student.version
        )

    def _enrollment_to_response(self, enrollment: Enrollment) -> EnrollmentResponse:
        """Convert enrollment entity to response model."""
        return EnrollmentResponse(
            id=enrollment.id,
            student_id=enrollment.student_id,
            course_code=enrollment.course_code,
            credits=enrollment.credits,
            grading_scale=enrollment.grading_scale.value,
            status=enrollment.status.value,
            final_score=enrollment.final_score,
            letter_grade=enrollment.letter_grade,
            gpa_value=enrollment.gpa_value,
            enrolled_at=enrollment.enrolled_at,
            completed_at=enrollment.completed_at
        )

    def _alert_to_response(self, alert: Alert) -> AlertResponse:
        return AlertResponse(
            id=alert.id,
            student_id=alert.student_id,
            level=alert.level.value,
            type=alert.type.value,
            message=alert.message,
            is_read=alert.is_read,
            is_resolved=alert.is_resolved,
            resolved_by=alert.resolved_by,
            created_at=alert.created_at
        )

    def _evaluation_to_response(self, result: EvaluationResult) -> EvaluationResponse:
        return EvaluationResponse(**result.to_dict())


def _parse_entry_type(value: str) -> GradeEntryType:
    try:
        return GradeEntryType(value.strip().upper())
    except ValueError:
        raise ValidationError(
            f"Unknown grade entry type: {value}",
            details={'entry_type': value, 'supported': [t.value for t in GradeEntryType]}
        )


def _jsonable(details: Dict[str, Any]) -> Dict[str, Any]:
    """Error details with enum members replaced by their values."""
    return {key: getattr(value, 'value', value) for key, value in details.items()}
