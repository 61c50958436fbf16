"""API Dependencies - Authentication, request context and services"""
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from application.services import HousekeepingService, ReservationService
from domain.auth import RequestContext, User, UserInDB
from domain.enums import StaffRole
from infrastructure.config import Settings
from infrastructure.security import decode_access_token, get_password_hash
from api.schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

# Staff directory; credential storage is owned by the staff system
_fake_users_db = {
    "admin": {
        "user_id": 1,
        "username": "admin",
        "full_name": "Admin User",
        "email": "admin@example.com",
        "role": StaffRole.ADMIN,
        "plain_password": "admin123",
        "disabled": False,
    },
    "manager": {
        "user_id": 2,
        "username": "manager",
        "full_name": "Hotel Manager",
        "email": "manager@example.com",
        "role": StaffRole.MANAGER,
        "plain_password": "manager123",
        "disabled": False,
    },
    "frontdesk": {
        "user_id": 3,
        "username": "frontdesk",
        "full_name": "Front Desk",
        "email": "frontdesk@example.com",
        "role": StaffRole.FRONT_DESK,
        "plain_password": "frontdesk123",
        "disabled": False,
    },
    "housekeeping": {
        "user_id": 4,
        "username": "housekeeping",
        "full_name": "Housekeeping Staff",
        "email": "housekeeping@example.com",
        "role": StaffRole.HOUSEKEEPING,
        "plain_password": "housekeeping123",
        "disabled": False,
    },
}

fake_users_db = _fake_users_db

# Cache for hashed passwords
_password_hash_cache = {}


def _get_hashed_password(username: str) -> str:
    """Lazily hash passwords on first access"""
    if username not in _password_hash_cache:
        user = _fake_users_db.get(username)
        if user and "plain_password" in user:
            _password_hash_cache[username] = get_password_hash(user["plain_password"])
    return _password_hash_cache.get(username, "")


def get_user(db, username: str):
    if username in db:
        user_dict = db[username].copy()
        if "plain_password" in user_dict:
            user_dict["hashed_password"] = _get_hashed_password(username)
            del user_dict["plain_password"]
        return UserInDB(**user_dict)
    return None


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings_from_app)
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token, settings)
        username: str = payload.get("sub")
        if username is None:
            raise credentials_exception
        token_data = TokenData(username=username)
    except JWTError:
        raise credentials_exception

    user = get_user(_fake_users_db, username=token_data.username)
    if user is None:
        raise credentials_exception
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)):
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


async def get_request_context(current_user: User = Depends(get_current_active_user)) -> RequestContext:
    """Acting principal passed explicitly into every service call"""
    return RequestContext.for_user(current_user)


def get_reservation_service(request: Request) -> ReservationService:
    settings: Settings = request.app.state.settings
    return ReservationService(
        request.app.state.uow_factory,
        confirmation_prefix=settings.CONFIRMATION_PREFIX,
        cleaning_duration=settings.CLEANING_TASK_DURATION_MINUTES,
        amend_uses_current_rate=settings.AMEND_USES_CURRENT_RATE
    )


def get_housekeeping_service(request: Request) -> HousekeepingService:
    return HousekeepingService(request.app.state.uow_factory)
