# projecthub/auth/auth_router.py

from datetime import datetime, timedelta, timezone
import logging

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext
from pydantic import BaseModel, field_validator
from sqlalchemy import or_
from sqlalchemy.orm import Session

from projecthub.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
from projecthub.database import get_db
from projecthub.models.user import User
from projecthub.responses import fail, ok

logger = logging.getLogger("projecthub.auth")

# ================= SECURITY =================
router = APIRouter(tags=["auth"])
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
# auto_error=False: missing tokens get our own 401 envelope
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login", auto_error=False)


class Principal(BaseModel):
    """The authenticated caller, passed explicitly into every core operation."""

    user_id: int
    username: str
    email: str


# ================= HELPERS =================
def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(user_id: int, username: str, email: str, minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES):
    exp = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return jwt.encode(
        {"sub": str(user_id), "username": username, "email": email, "exp": exp},
        SECRET_KEY,
        algorithm=ALGORITHM,
    )


def decode_access_token(token: str) -> Principal:
    try:
        data = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return Principal(
            user_id=int(data["sub"]),
            username=data.get("username", ""),
            email=data.get("email", ""),
        )
    except ExpiredSignatureError:
        raise fail(401, "Token expired. Please login again.", expired=True)
    except (JWTError, KeyError, ValueError):
        raise fail(401, "Invalid token.")


def _extract_token(bearer: str | None, x_access_token: str | None) -> str | None:
    return bearer or x_access_token or None


def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    x_access_token: str | None = Header(None),
) -> Principal:
    raw = _extract_token(token, x_access_token)
    if not raw:
        raise fail(401, "Access denied. No token provided.")
    return decode_access_token(raw)


def get_optional_user(
    token: str | None = Depends(oauth2_scheme),
    x_access_token: str | None = Header(None),
) -> Principal | None:
    raw = _extract_token(token, x_access_token)
    if not raw:
        return None
    try:
        return decode_access_token(raw)
    except HTTPException:
        # a bad token on a public route just means "anonymous"
        return None


def user_payload(user: User) -> dict:
    return {
        "userId": user.id,
        "username": user.username,
        "name": user.name,
        "email": user.email,
    }


# ================= SCHEMAS =================
class LoginRequest(BaseModel):
    emailOrUsername: str
    password: str

    @field_validator("emailOrUsername", "password")
    def not_blank(cls, value):
        if not value or not value.strip():
            raise ValueError("Email/Username and password are required")
        return value


# ================= ROUTES =================
@router.post("/login")
def login(request: LoginRequest, db: Session = Depends(get_db)):
    user = (
        db.query(User)
        .filter(or_(User.email == request.emailOrUsername, User.username == request.emailOrUsername))
        .first()
    )

    if not user:
        raise fail(404, "User not found. Please check your credentials or create an account.")

    if not verify_password(request.password, user.password):
        raise fail(401, "Incorrect password. Please try again.")

    token = create_access_token(user.id, user.username, user.email)
    logger.info("user_logged_in", extra={"user_id": user.id})
    return ok(user_payload(user), "Login successful", token=token)


@router.get("/verify")
def verify(principal: Principal = Depends(get_current_user), db: Session = Depends(get_db)):
    user = db.get(User, principal.user_id)
    if not user:
        raise fail(404, "User not found")

    return ok(user_payload(user), "Token is valid")


@router.post("/logout")
def logout(principal: Principal = Depends(get_current_user)):
    # tokens are stateless; the client drops it
    return ok(message="Logged out successfully. Please remove token from client storage.")
