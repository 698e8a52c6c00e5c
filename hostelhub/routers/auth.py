import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..errors import PersistFailure, Unauthenticated, ValidationFailure
from ..limiter import limiter
from ..models import User, UserRole
from ..security import clear_session, get_current_user_id, hash_password, require_user, set_session, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


class SignupIn(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=8, max_length=128)
    business_name: str = Field(min_length=1, max_length=200)
    display_name: Optional[str] = None
    phone: Optional[str] = None
    currency: str = settings.DEFAULT_CURRENCY


class LoginIn(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    id: int
    email: str
    role: str
    display_name: Optional[str] = None
    business_name: Optional[str] = None
    currency: str

    class Config:
        from_attributes = True


@router.post("/signup", response_model=UserOut, status_code=201)
@limiter.limit(settings.RATE_LIMIT_AUTH)
def signup(request: Request, payload: SignupIn, response: Response, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    if "@" not in email:
        raise ValidationFailure("Enter a valid email address")
    if db.query(User).filter(User.email == email).first():
        raise ValidationFailure("An account with this email already exists")
    user = User(
        email=email,
        hashed_password=hash_password(payload.password),
        role=UserRole.BUSINESS,
        display_name=payload.display_name,
        business_name=payload.business_name.strip(),
        phone=payload.phone,
        currency=payload.currency.upper(),
    )
    db.add(user)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Error creating account for %s", email)
        raise PersistFailure("Could not create account") from exc
    db.refresh(user)
    set_session(response, user.id)
    logger.info("Business account %s created", user.id)
    return user


@router.post("/login", response_model=UserOut)
@limiter.limit(settings.RATE_LIMIT_AUTH)
def login(request: Request, payload: LoginIn, response: Response, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email.strip().lower()).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise Unauthenticated("Invalid email or password")
    set_session(response, user.id)
    return user


@router.post("/logout")
def logout(request: Request, response: Response):
    user_id = get_current_user_id(request)
    if user_id is not None:
        # A session with a toggle in flight survives logout until the toggle finishes
        request.app.state.sessions.discard(user_id)
    clear_session(response)
    return {"ok": True}


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(require_user)):
    return user
