from typing import Optional
from passlib.context import CryptContext
from itsdangerous import URLSafeSerializer, BadSignature
from fastapi import Request, Response, Depends
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .errors import Unauthenticated
from .models import User

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
serializer = URLSafeSerializer(settings.SECRET_KEY, salt="hostelhub-session")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def session_token(user_id: int) -> str:
    return serializer.dumps({"uid": user_id})


def set_session(response: Response, user_id: int):
    is_production = getattr(settings, "ENVIRONMENT", "development") == "production"
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session_token(user_id),
        httponly=True,
        samesite="lax",
        secure=is_production,
        path="/",
        max_age=settings.SESSION_MAX_AGE_DAYS * 24 * 60 * 60
    )


def clear_session(response: Response):
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")


def get_current_user_id(request: Request) -> Optional[int]:
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return None
    try:
        data = serializer.loads(token)
        return int(data.get("uid"))
    except (BadSignature, ValueError, TypeError):
        return None


def require_user(request: Request, db: Session = Depends(get_db)) -> User:
    user_id = get_current_user_id(request)
    if not user_id:
        raise Unauthenticated()
    user = db.query(User).get(user_id)
    if not user:
        # Deleted account with a stale cookie
        raise Unauthenticated()
    return user


def require_business(user: User = Depends(require_user)) -> User:
    """Dependency for the business dashboard. Non-business accounts are treated as signed out."""
    if not user.is_business:
        raise Unauthenticated("A business account is required")
    return user
