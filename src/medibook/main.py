"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Depends, HTTPException, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from dotenv import load_dotenv
load_dotenv()

from medibook.config import settings
from medibook.database import get_db, init_models
from medibook.api import appointments as appointment_crud
from medibook.api import doctors as doctor_crud
from medibook.api import health_records as health_record_crud
from medibook.api import symptom_analyses as symptom_crud
from medibook.api import users as user_crud
from medibook.api.auth import get_current_user, get_optional_user
from medibook.models.appointment import AppointmentStatus, STATUS_TRANSITIONS
from medibook.models.user import Role, User
from medibook.schemas.common import ErrorResponse, ValidationIssue
from medibook.schemas.appointment import (
    AppointmentCreate,
    AppointmentDetailResponse,
    AppointmentResponse,
    AppointmentUpdate,
)
from medibook.schemas.doctor import (
    DoctorCreate,
    DoctorResponse,
    DoctorUpdate,
    DoctorWithUserResponse,
)
from medibook.schemas.health_record import (
    HealthRecordCreate,
    HealthRecordResponse,
    HealthRecordUpdate,
)
from medibook.schemas.symptom_analysis import SymptomAnalysisCreate, SymptomAnalysisResponse
from medibook.schemas.user import (
    CurrentUserResponse,
    LoginRequest,
    RegisterRequest,
    RoleUpdate,
    TokenResponse,
    UserResponse,
)
from medibook.services.policy import Action, PatientContext, Resource, authorize
from medibook.services.security import create_access_token, verify_password
from medibook.services.symptom_analyzer import (
    SymptomAnalyzer,
    get_symptom_analyzer,
    summarize_recommendations,
)

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    logger.info("MediBook starting up (environment=%s)", settings.environment)
    try:
        logger.info("Ensuring database tables...")
        await init_models()
        yield
    except Exception as exc:
        logger.error("Lifespan startup failed: %s", exc)
        raise
    finally:
        logger.info("MediBook shutting down")


app = FastAPI(
    title="MediBook",
    description="Healthcare appointment booking, doctor profiles and health records",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Error Handlers
# ============================================================================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render every HTTP error as ``{"message": ...}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=str(exc.detail)).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed payloads are a 400 with one issue per failing field."""
    errors = [
        ValidationIssue(path=list(err.get("loc", ())), message=err.get("msg", ""), code=err.get("type", ""))
        for err in exc.errors()
    ]
    body = ErrorResponse(message="Invalid request payload", errors=errors)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=ErrorResponse(message="Request conflicts with existing data").model_dump(exclude_none=True),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(message="Internal server error").model_dump(exclude_none=True),
    )


def _not_found(what: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


def _conflict(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "medibook"}


# ============================================================================
# Auth Endpoints
# ============================================================================

@app.post("/api/auth/register", response_model=TokenResponse, status_code=201)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """Create a local account and issue a token for it."""
    if await user_crud.get_user_by_email(db, payload.email):
        raise _conflict("Email already registered")

    user = await user_crud.create_user(db, payload)
    logger.info("Registered user %s (role=%s)", user.id, user.role)
    return TokenResponse(token=create_access_token(user.id), user=UserResponse.model_validate(user))


@app.post("/api/auth/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """Exchange email and password for a bearer token."""
    user = await user_crud.get_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return TokenResponse(token=create_access_token(user.id), user=UserResponse.model_validate(user))


@app.get("/api/auth/user", response_model=CurrentUserResponse)
async def get_auth_user(user: User = Depends(get_current_user)):
    """Current identity, with the doctor profile for doctors."""
    return user


@app.patch("/api/auth/user", response_model=CurrentUserResponse)
async def update_auth_user(
    payload: RoleUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Change the caller's role. No other field can be changed here."""
    authorize(user, Resource.USER, Action.CHANGE_ROLE, user)
    if payload.role == Role.PATIENT and user.doctor_profile is not None:
        raise _conflict("Users with a doctor profile must keep the doctor role")

    updated = await user_crud.update_user_role(db, user, payload.role)
    logger.info("User %s role set to %s", user.id, payload.role.value)
    return updated


# ============================================================================
# Doctor Endpoints
# ============================================================================

@app.post("/api/doctors", response_model=DoctorResponse, status_code=201)
async def create_doctor(
    doctor: DoctorCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create the caller's doctor profile."""
    authorize(
        user, Resource.DOCTOR_PROFILE, Action.CREATE,
        detail="Only doctors can create a doctor profile",
    )
    if user.doctor_profile is not None:
        raise _conflict("Doctor profile already exists")

    created = await doctor_crud.create_doctor_profile(db, user.id, doctor)
    logger.info("Created doctor profile %s for user %s", created.id, user.id)
    return created


def _parse_availability(availability: Optional[str]) -> Optional[bool]:
    """Map the ``availability`` query param to a filter value (None = any)."""
    if availability is None:
        return True
    value = availability.strip().lower()
    if value in ("true", "available", "1"):
        return True
    if value in ("false", "unavailable", "0"):
        return False
    if value == "all":
        return None
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="availability must be one of: true, false, all",
    )


@app.get("/api/doctors", response_model=list[DoctorWithUserResponse])
async def search_doctors(
    specialty: Optional[str] = None,
    availability: Optional[str] = None,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Search doctors. With no filters, every available doctor is returned."""
    if specialty is None and availability is None:
        return await doctor_crud.get_all_doctors(db)
    return await doctor_crud.search_doctors(
        db, specialty=specialty, available=_parse_availability(availability)
    )


@app.get("/api/doctors/profile/{user_id}", response_model=DoctorWithUserResponse)
async def get_doctor_by_owner(
    user_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Look up the doctor profile owned by a user."""
    doctor = await doctor_crud.get_doctor_profile(db, user_id)
    if not doctor:
        raise _not_found("Doctor profile")
    return doctor


@app.get("/api/doctors/{doctor_id}", response_model=DoctorWithUserResponse)
async def get_doctor(
    doctor_id: int,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Get doctor profile by ID."""
    doctor = await doctor_crud.get_doctor_by_id(db, doctor_id)
    if not doctor:
        raise _not_found("Doctor")
    return doctor


@app.patch("/api/doctors/{doctor_id}", response_model=DoctorResponse)
async def update_doctor(
    doctor_id: int,
    updates: DoctorUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Patch the caller's own doctor profile."""
    doctor = await doctor_crud.get_doctor_by_id(db, doctor_id)
    if not doctor:
        raise _not_found("Doctor")
    authorize(
        user, Resource.DOCTOR_PROFILE, Action.UPDATE, doctor,
        detail="You can only update your own doctor profile",
    )
    return await doctor_crud.update_doctor_profile(db, doctor, updates)


# ============================================================================
# Appointment Endpoints
# ============================================================================

@app.post("/api/appointments", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    appointment: AppointmentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Book an appointment with the caller as patient."""
    # Verify doctor exists
    if not await doctor_crud.get_doctor_by_id(db, appointment.doctor_id):
        raise _not_found("Doctor")

    if await appointment_crud.find_conflicting_appointment(
        db, appointment.doctor_id, appointment.appointment_date
    ):
        raise _conflict("Doctor already has an appointment at this time")

    created = await appointment_crud.create_appointment(db, user.id, appointment)
    logger.info(
        "Booked appointment %s: patient=%s doctor=%s at %s",
        created.id, user.id, created.doctor_id, created.appointment_date.isoformat(),
    )
    return created


@app.get("/api/appointments", response_model=list[AppointmentDetailResponse])
async def list_appointments(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Doctors see bookings against their profile, patients see their own."""
    if user.is_doctor:
        if user.doctor_profile is None:
            return []
        return await appointment_crud.get_appointments_by_doctor(db, user.doctor_profile.id)
    return await appointment_crud.get_appointments_by_patient(db, user.id)


@app.get("/api/appointments/{appointment_id}", response_model=AppointmentDetailResponse)
async def get_appointment(
    appointment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get appointment by ID. Only its participants may see it."""
    appointment = await appointment_crud.get_appointment_by_id(db, appointment_id)
    if not appointment:
        raise _not_found("Appointment")
    authorize(user, Resource.APPOINTMENT, Action.READ, appointment)
    return appointment


@app.patch("/api/appointments/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    updates: AppointmentUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Patch an appointment the caller takes part in."""
    appointment = await appointment_crud.get_appointment_by_id(db, appointment_id)
    if not appointment:
        raise _not_found("Appointment")
    authorize(
        user, Resource.APPOINTMENT, Action.UPDATE, appointment,
        detail="You can only update your own appointments",
    )

    changes = updates.model_dump(exclude_unset=True)
    target_status = changes["status"].value if "status" in changes else appointment.status

    if target_status != appointment.status:
        if target_status not in STATUS_TRANSITIONS.get(appointment.status, frozenset()):
            raise _conflict(
                f"Cannot change appointment status from {appointment.status} to {target_status}"
            )
        if target_status == AppointmentStatus.COMPLETED.value:
            authorize(
                user, Resource.APPOINTMENT, Action.COMPLETE, appointment,
                detail="Only the attending doctor can complete an appointment",
            )

    if appointment.is_terminal and set(changes) - {"notes", "status"}:
        raise _conflict(f"Appointment is {appointment.status} and can no longer be changed")

    if "appointment_date" in changes and target_status == AppointmentStatus.SCHEDULED.value:
        if await appointment_crud.find_conflicting_appointment(
            db, appointment.doctor_id, updates.appointment_date, exclude_id=appointment.id
        ):
            raise _conflict("Doctor already has an appointment at this time")

    updated = await appointment_crud.update_appointment(db, appointment, updates)
    logger.info("Updated appointment %s by user %s: %s", appointment_id, user.id, sorted(changes))
    return updated


@app.delete("/api/appointments/{appointment_id}", status_code=204)
async def cancel_appointment(
    appointment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cancel an appointment. Cancelling twice is a no-op."""
    appointment = await appointment_crud.get_appointment_by_id(db, appointment_id)
    if not appointment:
        raise _not_found("Appointment")
    authorize(
        user, Resource.APPOINTMENT, Action.CANCEL, appointment,
        detail="You can only cancel your own appointments",
    )
    if appointment.status == AppointmentStatus.COMPLETED.value:
        raise _conflict("Completed appointments cannot be cancelled")

    await appointment_crud.cancel_appointment(db, appointment)
    logger.info("Cancelled appointment %s by user %s", appointment_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Health Record Endpoints
# ============================================================================

async def _patient_context(db: AsyncSession, user: User, patient_id: str) -> PatientContext:
    """Whose records are being touched, and whether the caller is one of their doctors."""
    under_care = False
    if user.is_doctor and user.doctor_profile is not None and patient_id != user.id:
        under_care = await appointment_crud.has_active_appointment(
            db, user.doctor_profile.id, patient_id
        )
    return PatientContext(patient_id=patient_id, under_care=under_care)


@app.post("/api/health-records", response_model=HealthRecordResponse, status_code=201)
async def create_health_record(
    record: HealthRecordCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a health record. Patients may only write their own, doctors must name the patient."""
    if user.is_doctor:
        if not record.patient_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="patientId is required when a doctor creates a health record",
            )
        patient = await user_crud.get_user(db, record.patient_id)
        if not patient:
            raise _not_found("Patient")
        if patient.role != Role.PATIENT.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Health records can only belong to patients",
            )
        patient_id = patient.id
    else:
        patient_id = record.patient_id or user.id

    authorize(
        user, Resource.HEALTH_RECORD, Action.CREATE, PatientContext(patient_id),
        detail="Patients can only create their own health records",
    )

    created = await health_record_crud.create_health_record(db, patient_id, record)
    logger.info("Created health record %s for patient %s by %s", created.id, patient_id, user.id)
    return created


@app.get("/api/health-records", response_model=list[HealthRecordResponse])
async def list_health_records(
    patient_id: Optional[str] = Query(None, alias="patientId"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The caller's records. Doctors may pass ``patientId`` for a patient they treat."""
    target = patient_id or user.id
    authorize(
        user, Resource.HEALTH_RECORD, Action.LIST, await _patient_context(db, user, target),
        detail="You can only view health records of your own patients",
    )
    return await health_record_crud.get_health_records_by_patient(db, target)


@app.get("/api/health-records/{record_id}", response_model=HealthRecordResponse)
async def get_health_record(
    record_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get health record by ID."""
    record = await health_record_crud.get_health_record_by_id(db, record_id)
    if not record:
        raise _not_found("Health record")
    authorize(
        user, Resource.HEALTH_RECORD, Action.READ,
        await _patient_context(db, user, record.patient_id),
    )
    return record


@app.patch("/api/health-records/{record_id}", response_model=HealthRecordResponse)
async def update_health_record(
    record_id: int,
    updates: HealthRecordUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Patch a health record."""
    record = await health_record_crud.get_health_record_by_id(db, record_id)
    if not record:
        raise _not_found("Health record")
    authorize(
        user, Resource.HEALTH_RECORD, Action.UPDATE,
        await _patient_context(db, user, record.patient_id),
        detail="You can only update health records of your own patients",
    )
    return await health_record_crud.update_health_record(db, record, updates)


# ============================================================================
# Symptom Analysis Endpoints
# ============================================================================

@app.post("/api/symptom-analysis", response_model=SymptomAnalysisResponse, status_code=201)
async def create_symptom_analysis(
    submission: SymptomAnalysisCreate,
    user: User = Depends(get_current_user),
    analyzer: SymptomAnalyzer = Depends(get_symptom_analyzer),
    db: AsyncSession = Depends(get_db),
):
    """Run the configured analyzer over the submitted symptoms and store the result."""
    result = await analyzer.analyze(submission.symptoms, submission.age, submission.gender)
    stored = await symptom_crud.create_symptom_analysis(
        db, user.id, submission, result, summarize_recommendations(result)
    )
    logger.info("Stored symptom analysis %s for patient %s (%s)", stored.id, user.id, analyzer.name)
    return stored


@app.get("/api/symptom-analysis", response_model=list[SymptomAnalysisResponse])
async def list_symptom_analyses(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The caller's analyses, newest first."""
    return await symptom_crud.get_symptom_analyses_by_patient(db, user.id)


@app.get("/api/symptom-analysis/{analysis_id}", response_model=SymptomAnalysisResponse)
async def get_symptom_analysis(
    analysis_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get one of the caller's analyses by ID."""
    analysis = await symptom_crud.get_symptom_analysis_by_id(db, analysis_id)
    if not analysis:
        raise _not_found("Symptom analysis")
    authorize(user, Resource.SYMPTOM_ANALYSIS, Action.READ, analysis)
    return analysis
