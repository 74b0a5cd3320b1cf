"""Registration, login and profile endpoints"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taskboard.database import get_db
from taskboard.dependencies import get_current_user
from taskboard.errors import AuthError, ConflictError
from taskboard.models import User
from taskboard.schemas import Token, UserCreate, UserLogin, UserResponse, UserUpdate
from taskboard.security import create_access_token, hash_password, verify_password

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register(user_in: UserCreate, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == user_in.email).first():
        raise ConflictError("Email already registered")

    user = User(
        email=user_in.email,
        name=user_in.name,
        password_hash=hash_password(user_in.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user_registered", extra={"user_id": user.id})
    return Token(access_token=create_access_token(user.id), user=UserResponse.model_validate(user))


@router.post("/login", response_model=Token)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == credentials.email).first()
    if not user or not verify_password(credentials.password, user.password_hash):
        raise AuthError("Invalid credentials")
    return Token(access_token=create_access_token(user.id), user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
def read_current_user(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile", response_model=UserResponse)
def update_profile(
    profile_in: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Change the caller's display name or avatar URL."""
    for field, value in profile_in.model_dump(exclude_unset=True).items():
        if field == "name" and value is None:
            continue
        setattr(current_user, field, value or None)

    db.commit()
    db.refresh(current_user)
    logger.info("profile_updated", extra={"user_id": current_user.id})
    return current_user


@router.post("/logout")
def logout(current_user: User = Depends(get_current_user)):
    """Tokens are stateless; the client drops its copy."""
    logger.info("user_logged_out", extra={"user_id": current_user.id})
    return {"message": "Logged out"}
