import logging
import os
import time
from datetime import datetime

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from pydantic import field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from prep_backend.auth import jwt_handler
from prep_backend.auth.dependencies import get_current_user
from prep_backend.auth.passwords import hash_password, verify_password
from prep_backend.core import config
from prep_backend.core.schemas import CamelModel
from prep_backend.database import get_db
from prep_backend.models.user import User

router = APIRouter(tags=["auth"])

logger = logging.getLogger(__name__)

DATABASE_UNAVAILABLE = "Database unavailable. Verify DATABASE_URL."
# bcrypt only reads the first 72 bytes.
MAX_PASSWORD_BYTES = 72


def _normalize_email(value: str) -> str:
    normalized = value.strip().lower()
    if not normalized:
        raise ValueError("Email is required.")
    return normalized


class RegisterRequest(CamelModel):
    name: str
    email: str
    password: str
    profile_image_url: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Name is required.")
        return normalized

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _normalize_email(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError("Password is required.")
        if len(value.encode()) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be {MAX_PASSWORD_BYTES} bytes or fewer.")
        return value


class LoginRequest(CamelModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        # A blank email is left to miss the lookup and fail as bad credentials.
        return value.strip().lower()


class AuthResponse(CamelModel):
    id: int
    name: str
    email: str
    profile_image_url: str | None = None
    token: str


class ProfileResponse(CamelModel):
    id: int
    name: str
    email: str
    profile_image_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UploadImageResponse(CamelModel):
    image_url: str


def build_auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        profile_image_url=user.profile_image_url,
        token=jwt_handler.create_access_token(subject=user.id),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    try:
        existing_user = db.query(User).filter(User.email == data.email).first()
        if existing_user:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists")

        user = User(
            name=data.name,
            email=data.email,
            hashed_password=hash_password(data.password),
            profile_image_url=data.profile_image_url,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError as exc:
        # Lost a race with a concurrent registration for the same email.
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Registration failed for %s", data.email)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DATABASE_UNAVAILABLE) from exc

    logger.info("Registered user %s", user.id)
    return build_auth_response(user)


@router.post("/login", response_model=AuthResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    try:
        user = db.query(User).filter(User.email == data.email).first()
    except SQLAlchemyError as exc:
        logger.exception("Login lookup failed")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DATABASE_UNAVAILABLE) from exc

    if user is None or not verify_password(data.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    return build_auth_response(user)


@router.get("/profile", response_model=ProfileResponse)
def profile(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return get_profile(current_user.id, db)


def get_profile(user_id: int, db: Session) -> User:
    try:
        user = db.get(User, user_id)
    except SQLAlchemyError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DATABASE_UNAVAILABLE) from exc
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.post("/upload-image", response_model=UploadImageResponse)
def upload_image(request: Request, image: UploadFile | None = File(None)):
    if image is None or not image.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    extension = os.path.splitext(image.filename)[1].lower()
    if extension not in config.ALLOWED_IMAGE_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only .jpeg, .jpg and .png formats are allowed",
        )

    filename = f"{int(time.time() * 1000)}-{os.path.basename(image.filename)}"
    os.makedirs(config.UPLOAD_DIR, exist_ok=True)
    with open(os.path.join(config.UPLOAD_DIR, filename), "wb") as destination:
        destination.write(image.file.read())

    image_url = f"{str(request.base_url).rstrip('/')}/uploads/{filename}"
    return UploadImageResponse(image_url=image_url)
