"""
Session management: credential storage, signed session tokens and the
FastAPI dependencies that gate protected routes.

Tokens are HS256 JWTs carrying the user id in `sub`. They travel in an
http-only cookie; an `Authorization: Bearer` header is accepted as well.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import jwt
from fastapi import Depends, Request, Response
from passlib.context import CryptContext
from pymongo.errors import DuplicateKeyError

import config
import database
from errors import DuplicateUser, Forbidden, InvalidCredentials, Unauthenticated
from schemas import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def public_user(doc: dict) -> dict:
    return {"_id": doc["_id"], "email": doc["email"], "is_admin": bool(doc.get("is_admin", False))}


def issue_token(user_id: str, ttl_seconds: int) -> str:
    now = datetime.now(timezone.utc)
    payload = {"sub": user_id, "iat": now, "exp": now + timedelta(seconds=ttl_seconds)}
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_token(token: str) -> str:
    """Return the user id a token was issued for."""
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM], options={"require": ["exp", "sub"]})
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Session expired")
    except jwt.PyJWTError:
        raise Unauthenticated("Invalid session token")
    return payload["sub"]


# ===================== Operations =====================

def register(email: str, password: str) -> Tuple[dict, str]:
    email = normalize_email(email)
    if database.find_document("user", {"email": email}):
        raise DuplicateUser()
    user = User(email=email, password_hash=pwd_context.hash(password))
    try:
        user_id = database.create_document("user", user)
    except DuplicateKeyError:
        raise DuplicateUser()
    logger.info("Registered user %s", user_id)
    token = issue_token(user_id, config.REGISTER_TOKEN_TTL)
    return {"_id": user_id, "email": user.email, "is_admin": user.is_admin}, token


def login(email: str, password: str) -> Tuple[dict, str]:
    doc = database.find_document("user", {"email": normalize_email(email)})
    if not doc or not pwd_context.verify(password, doc["password_hash"]):
        raise InvalidCredentials()
    logger.info("User %s logged in", doc["_id"])
    return public_user(doc), issue_token(doc["_id"], config.LOGIN_TOKEN_TTL)


def validate_session(token: Optional[str]) -> dict:
    if not token:
        raise Unauthenticated("No token, authorization denied")
    user_id = decode_token(token)
    doc = database.get_document_by_id("user", user_id)
    if not doc:
        raise Unauthenticated("User not found")
    return public_user(doc)


# ===================== Cookie transport =====================

def set_session_cookie(response: Response, token: str, ttl_seconds: int) -> None:
    response.set_cookie(
        config.COOKIE_NAME,
        token,
        max_age=ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=config.COOKIE_SECURE,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(config.COOKIE_NAME, httponly=True, samesite="lax", secure=config.COOKIE_SECURE)


def token_from_request(request: Request) -> Optional[str]:
    token = request.cookies.get(config.COOKIE_NAME)
    if token:
        return token
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return None


# ===================== Dependencies =====================

def get_current_user(request: Request) -> dict:
    return validate_session(token_from_request(request))


def require_admin(user: dict = Depends(get_current_user)) -> dict:
    if not user["is_admin"]:
        raise Forbidden()
    return user
