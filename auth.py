import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from config import Settings
from errors import InvalidCredentials, NotFound, ValidationError
from schemas import Role, User
from users import UserStore

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# Helper functions for auth

def verify_password(plain_password, hashed_password):
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # not a hash passlib recognises, e.g. a placeholder left in users.json
        return False


def get_password_hash(password):
    return pwd_context.hash(password)


def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.ALGORITHM)


def authenticate(users: UserStore, email: str, password: str) -> User:
    if not email or not password:
        raise ValidationError("Please enter email & password")
    user = users.get_by_email(email)
    if user is None or not verify_password(password, user.password):
        logger.info("Failed login for %s", email)
        raise InvalidCredentials()
    return users.update_last_login(user.id)


def issue_token(user: User, settings: Settings) -> str:
    return create_access_token({"sub": user.id, "role": user.role.value}, settings)


# FastAPI dependencies

def get_user_store(request: Request) -> UserStore:
    return request.app.state.users


def get_current_user(request: Request, token: Optional[str] = Depends(oauth2_scheme)) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise credentials_exception
    settings: Settings = request.app.state.settings
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.ALGORITHM])
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    try:
        return request.app.state.users.get(user_id)
    except NotFound:
        raise credentials_exception


def get_current_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != Role.admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return user
