from typing import Annotated

import structlog
from bson import ObjectId
from email_validator import validate_email
from fastapi import APIRouter, Depends
from mongoengine import NotUniqueError
from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from app.models.user import User
from app.services.auth import get_current_user, get_token_claims, issue_token
from app.services.denylist import revoke_token
from app.utils.base import ApiError, ErrorKind


logger = structlog.get_logger()
router = APIRouter()

INVALID_CREDENTIALS = "Invalid login credentials"
EMAIL_TAKEN = "Email already registered"


def _check_email(value: str) -> str:
    # Validate only; the address is stored exactly as the caller typed it
    validate_email(value, check_deliverability=False)
    return value


Email = Annotated[str, AfterValidator(_check_email)]


def _session(user: User) -> dict:
    return {"user": user.to_public(), "token": issue_token(user)}


def _require_owner(user_id: str, current_user: User) -> None:
    # Same 401 as the auth gate, so other users' ids are indistinguishable
    if user_id != str(current_user.id):
        logger.info("auth.not_owner", user_id=str(current_user.id), target=user_id)
        raise ApiError(ErrorKind.UNAUTHORIZED)


def _email_taken(email: str, exclude_id=None) -> bool:
    query = User.objects(email=email)
    if exclude_id is not None:
        query = query.filter(id__ne=exclude_id)
    return query.first() is not None


class RegisterBody(BaseModel):
    name: str = Field(min_length=1)
    email: Email
    password: str = Field(min_length=1)


@router.post("")
def register(body: RegisterBody) -> dict:
    """PUBLIC: Create a user and log them in."""
    if _email_taken(body.email):
        raise ApiError(ErrorKind.CONFLICT, EMAIL_TAKEN)
    # Password is hashed by User.save
    user = User(name=body.name, email=body.email, password=body.password)
    try:
        user.save()
    except NotUniqueError:
        raise ApiError(ErrorKind.CONFLICT, EMAIL_TAKEN)
    logger.info("user.registered", user_id=str(user.id))
    return _session(user)


class LoginBody(BaseModel):
    email: str
    password: str


@router.post("/login")
def login(body: LoginBody) -> dict:
    """PUBLIC: Exchange email and password for a fresh token."""
    user = User.find_by_credentials(body.email, body.password)
    # Unknown email and wrong password look the same to the caller
    if not user:
        logger.info("user.login_failed")
        raise ApiError(ErrorKind.VALIDATION, INVALID_CREDENTIALS)
    logger.info("user.logged_in", user_id=str(user.id))
    return _session(user)


@router.post("/logout")
def logout(claims: dict = Depends(get_token_claims)) -> dict:
    """PROTECTED: Revoke the token used for this request."""
    revoke_token(claims)
    logger.info("user.logged_out", user_id=claims["userId"])
    return {"message": "Logged out"}


@router.post("/logoutAll")
def logout_all(current_user: User = Depends(get_current_user)) -> dict:
    """PROTECTED: Invalidate every token issued to the current user."""
    current_user.token_version = str(int(current_user.token_version) + 1)
    current_user.save()
    logger.info("user.logged_out_all", user_id=str(current_user.id))
    return {"message": "Logged out of all sessions"}


@router.get("/me")
def read_me(current_user: User = Depends(get_current_user)) -> dict:
    """PROTECTED: The authenticated user's profile."""
    return current_user.to_public()


@router.get("/{user_id}")
def read_user(user_id: str) -> dict:
    """PUBLIC: Any user's public profile."""
    if not ObjectId.is_valid(user_id):
        raise ApiError(ErrorKind.VALIDATION, "Invalid user id")
    user = User.objects(id=user_id).first()
    if not user:
        raise ApiError(ErrorKind.NOT_FOUND, "User not found")
    return user.to_public()


class UpdateBody(BaseModel):
    """Fields a user may change on their own profile."""
    name: str | None = Field(default=None, min_length=1)
    email: Email | None = None
    password: str | None = Field(default=None, min_length=1)

    model_config = ConfigDict(extra="forbid")


@router.put("/{user_id}")
def update_user(user_id: str, body: UpdateBody, current_user: User = Depends(get_current_user)) -> dict:
    """PROTECTED: Overwrite exactly the given fields on the caller's own record."""
    _require_owner(user_id, current_user)

    changes = body.model_dump(exclude_unset=True)
    nulls = sorted(field for field, value in changes.items() if value is None)
    if nulls:
        raise ApiError(ErrorKind.VALIDATION, f"Invalid fields: {', '.join(nulls)}")

    if "email" in changes and _email_taken(changes["email"], exclude_id=current_user.id):
        raise ApiError(ErrorKind.CONFLICT, EMAIL_TAKEN)

    for field, value in changes.items():
        setattr(current_user, field, value)
    try:
        current_user.save()
    except NotUniqueError:
        raise ApiError(ErrorKind.CONFLICT, EMAIL_TAKEN)
    logger.info("user.updated", user_id=user_id, fields=sorted(changes))
    return current_user.to_public()


@router.delete("/{user_id}")
def delete_user(user_id: str, current_user: User = Depends(get_current_user)) -> dict:
    """PROTECTED: Delete the caller's own record."""
    _require_owner(user_id, current_user)
    current_user.delete()
    logger.info("user.deleted", user_id=user_id)
    return {"message": "User deleted"}
