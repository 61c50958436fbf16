from contextlib import asynccontextmanager
from datetime import date, timedelta
from functools import partial
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Reservation
    CreateReservationRequest, AmendReservationRequest, ReservationResponse, CheckOutResponse,
    # Housekeeping
    CreateTaskRequest, UpdateTaskRequest, TaskResponse,
    # Common / Auth
    MessageResponse, Token, UserResponse
)
from api.dependencies import (
    fake_users_db, get_current_active_user, get_housekeeping_service, get_request_context,
    get_reservation_service, get_settings_from_app, get_user
)
from api.errors import register_exception_handlers
from application.services import HousekeepingService, ReservationService, UnitOfWorkFactory
from domain.auth import RequestContext, User
from domain.entities import HousekeepingTask, Reservation
from domain.enums import ReservationStatus, TaskStatus
from infrastructure.config import Settings, get_settings
from infrastructure.database import Database
from infrastructure.logging import configure_logging
from infrastructure.repositories.sqlalchemy_repositories import SqlAlchemyUnitOfWork
from infrastructure.security import create_access_token, verify_password
from infrastructure.seed import seed_sample_data

router = APIRouter()

# ============================================================================
# HEALTH ENDPOINT
# ============================================================================

@router.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@router.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    settings: Settings = Depends(get_settings_from_app)
):
    user = get_user(fake_users_db, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": user.username, "role": user.role.value},
        expires_delta=access_token_expires,
        settings=settings
    )
    return {"access_token": access_token, "token_type": "bearer"}

@router.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return _user_to_response(current_user)

# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@router.post("/api/reservations", response_model=ReservationResponse, status_code=201, tags=["Reservations"])
async def create_reservation(
    request: CreateReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    context: RequestContext = Depends(get_request_context),
    settings: Settings = Depends(get_settings_from_app)
):
    """Create new reservation"""
    reservation = await service.create_reservation(context, request)
    return _reservation_to_response(reservation, settings.CURRENCY)

@router.get("/api/reservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def list_reservations(
    status: Optional[ReservationStatus] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    service: ReservationService = Depends(get_reservation_service),
    context: RequestContext = Depends(get_request_context),
    settings: Settings = Depends(get_settings_from_app)
):
    """Get reservations, optionally filtered by status and stay window"""
    reservations = await service.list_reservations(status=status, from_date=from_date, to_date=to_date)
    return [_reservation_to_response(r, settings.CURRENCY) for r in reservations]

@router.get("/api/reservations/confirmation/{confirmation_number}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation_by_confirmation_number(
    confirmation_number: str,
    service: ReservationService = Depends(get_reservation_service),
    context: RequestContext = Depends(get_request_context),
    settings: Settings = Depends(get_settings_from_app)
):
    """Get reservation by confirmation number"""
    reservation = await service.get_reservation_by_confirmation_number(confirmation_number)
    return _reservation_to_response(reservation, settings.CURRENCY)

@router.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation(
    reservation_id: int,
    service: ReservationService = Depends(get_reservation_service),
    context: RequestContext = Depends(get_request_context),
    settings: Settings = Depends(get_settings_from_app)
):
    """Get reservation by ID"""
    reservation = await service.get_reservation(reservation_id)
    return _reservation_to_response(reservation, settings.CURRENCY)

@router.put("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def amend_reservation(
    reservation_id: int,
    request: AmendReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    context: RequestContext = Depends(get_request_context),
    settings: Settings = Depends(get_settings_from_app)
):
    """Amend reservation details"""
    reservation = await service.amend_reservation(context, reservation_id, request)
    return _reservation_to_response(reservation, settings.CURRENCY)

@router.post("/api/reservations/{reservation_id}/check-in", response_model=ReservationResponse, tags=["Reservations"])
async def check_in_guest(
    reservation_id: int,
    service: ReservationService = Depends(get_reservation_service),
    context: RequestContext = Depends(get_request_context),
    settings: Settings = Depends(get_settings_from_app)
):
    """Check in guest"""
    reservation = await service.check_in(context, reservation_id)
    return _reservation_to_response(reservation, settings.CURRENCY)

@router.post("/api/reservations/{reservation_id}/check-out", response_model=CheckOutResponse, tags=["Reservations"])
async def check_out_guest(
    reservation_id: int,
    service: ReservationService = Depends(get_reservation_service),
    context: RequestContext = Depends(get_request_context),
    settings: Settings = Depends(get_settings_from_app)
):
    """Check out guest and open the room's cleaning task"""
    result = await service.check_out(context, reservation_id)
    return CheckOutResponse(
        message="Guest checked out successfully",
        reservation=_reservation_to_response(result.reservation, settings.CURRENCY),
        cleaning_task=_task_to_response(result.cleaning_task)
    )

@router.post("/api/reservations/{reservation_id}/cancel", response_model=ReservationResponse, tags=["Reservations"])
async def cancel_reservation(
    reservation_id: int,
    service: ReservationService = Depends(get_reservation_service),
    context: RequestContext = Depends(get_request_context),
    settings: Settings = Depends(get_settings_from_app)
):
    """Cancel reservation"""
    reservation = await service.cancel_reservation(context, reservation_id)
    return _reservation_to_response(reservation, settings.CURRENCY)

@router.delete("/api/reservations/{reservation_id}", response_model=MessageResponse, tags=["Reservations"])
async def delete_reservation(
    reservation_id: int,
    service: ReservationService = Depends(get_reservation_service),
    context: RequestContext = Depends(get_request_context)
):
    """Delete reservation"""
    await service.delete_reservation(context, reservation_id)
    return MessageResponse(message="Reservation deleted successfully")

# ============================================================================
# HOUSEKEEPING ENDPOINTS
# ============================================================================

@router.get("/api/housekeeping", response_model=List[TaskResponse], tags=["Housekeeping"])
async def list_tasks(
    status: Optional[TaskStatus] = None,
    service: HousekeepingService = Depends(get_housekeeping_service),
    context: RequestContext = Depends(get_request_context)
):
    """Get housekeeping tasks, newest first"""
    tasks = await service.list_tasks(status=status)
    return [_task_to_response(t) for t in tasks]

@router.post("/api/housekeeping", response_model=TaskResponse, status_code=201, tags=["Housekeeping"])
async def create_task(
    request: CreateTaskRequest,
    service: HousekeepingService = Depends(get_housekeeping_service),
    context: RequestContext = Depends(get_request_context)
):
    """Create housekeeping task"""
    task = await service.create_task(context, request)
    return _task_to_response(task)

@router.get("/api/housekeeping/{task_id}", response_model=TaskResponse, tags=["Housekeeping"])
async def get_task(
    task_id: int,
    service: HousekeepingService = Depends(get_housekeeping_service),
    context: RequestContext = Depends(get_request_context)
):
    """Get housekeeping task by ID"""
    task = await service.get_task(task_id)
    return _task_to_response(task)

@router.put("/api/housekeeping/{task_id}", response_model=TaskResponse, tags=["Housekeeping"])
async def update_task(
    task_id: int,
    request: UpdateTaskRequest,
    service: HousekeepingService = Depends(get_housekeeping_service),
    context: RequestContext = Depends(get_request_context)
):
    """Update housekeeping task"""
    task = await service.update_task(context, task_id, request)
    return _task_to_response(task)

@router.post("/api/housekeeping/{task_id}/complete", response_model=TaskResponse, tags=["Housekeeping"])
async def complete_task(
    task_id: int,
    service: HousekeepingService = Depends(get_housekeeping_service),
    context: RequestContext = Depends(get_request_context)
):
    """Mark housekeeping task completed"""
    task = await service.complete_task(context, task_id)
    return _task_to_response(task)

@router.delete("/api/housekeeping/{task_id}", response_model=MessageResponse, tags=["Housekeeping"])
async def delete_task(
    task_id: int,
    service: HousekeepingService = Depends(get_housekeeping_service),
    context: RequestContext = Depends(get_request_context)
):
    """Delete housekeeping task"""
    await service.delete_task(context, task_id)
    return MessageResponse(message="Task deleted successfully")

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _reservation_to_response(reservation: Reservation, currency: str) -> ReservationResponse:
    """Convert Reservation entity to ReservationResponse"""
    return ReservationResponse(
        id=reservation.id,
        confirmation_number=reservation.confirmation_number,
        guest_id=reservation.guest_id,
        room_id=reservation.room_id,
        check_in_date=reservation.check_in_date,
        check_out_date=reservation.check_out_date,
        number_of_guests=reservation.number_of_guests,
        number_of_nights=reservation.number_of_nights,
        room_rate=reservation.room_rate,
        total_amount=reservation.total_amount,
        paid_amount=reservation.paid_amount,
        balance_due=reservation.balance_due,
        currency=currency,
        status=reservation.status.value,
        source=reservation.source.value,
        special_requests=reservation.special_requests,
        notes=reservation.notes,
        created_at=reservation.created_at,
        updated_at=reservation.updated_at,
        checked_in_at=reservation.checked_in_at,
        checked_out_at=reservation.checked_out_at
    )

def _task_to_response(task: HousekeepingTask) -> TaskResponse:
    """Convert HousekeepingTask entity to TaskResponse"""
    return TaskResponse(
        id=task.id,
        room_id=task.room_id,
        reservation_id=task.reservation_id,
        task_type=task.task_type.value,
        priority=task.priority.value,
        status=task.status.value,
        assigned_to=task.assigned_to,
        description=task.description,
        estimated_duration=task.estimated_duration,
        started_at=task.started_at,
        completed_at=task.completed_at,
        notes=task.notes,
        created_by=task.created_by,
        created_at=task.created_at,
        updated_at=task.updated_at
    )

def _user_to_response(user: User) -> UserResponse:
    return UserResponse(
        user_id=user.user_id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        role=user.role.value,
        disabled=user.disabled
    )

# ============================================================================
# APPLICATION FACTORY
# ============================================================================

def create_app(settings: Optional[Settings] = None, uow_factory: Optional[UnitOfWorkFactory] = None) -> FastAPI:
    """Build the API.

    Without ``uow_factory`` the app opens the configured database on startup
    and closes it on shutdown; passing one (e.g. an in-memory store) skips the
    database entirely.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings)
        database = None
        if app.state.uow_factory is None:
            database = Database.from_settings(settings)
            if settings.CREATE_TABLES_ON_STARTUP:
                await database.create_all()
            app.state.uow_factory = partial(SqlAlchemyUnitOfWork, database.session_factory)
            if settings.SEED_SAMPLE_DATA:
                await seed_sample_data(app.state.uow_factory())
        app.state.database = database
        try:
            yield
        finally:
            if database is not None:
                await database.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Reservation lifecycle and housekeeping API for hotel front-desk staff",
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.uow_factory = uow_factory
    app.state.database = None
    register_exception_handlers(app)
    app.include_router(router)
    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
