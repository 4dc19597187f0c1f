"""Signup, login and the current-user profile."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field
from pymongo.errors import DuplicateKeyError

from database import create_document, find_document
from schemas import AuthUser
from security import create_access_token, get_current_user, get_password_hash, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class SignupRequest(BaseModel):
    name: Optional[str] = None
    email: EmailStr
    password: str = Field(..., min_length=8)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class PublicUser(BaseModel):
    id: str
    name: Optional[str] = None
    email: EmailStr
    avatar_url: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


def public_user(doc: dict) -> PublicUser:
    return PublicUser(
        id=str(doc.get("_id")),
        name=doc.get("name"),
        email=doc.get("email"),
        avatar_url=doc.get("avatar_url"),
        is_active=doc.get("is_active", True),
        created_at=doc.get("created_at"),
    )


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupRequest):
    email = payload.email.lower()
    if find_document("authuser", {"email": email}):
        raise HTTPException(status_code=400, detail="Email is already registered")

    user = AuthUser(
        name=payload.name,
        email=email,
        password_hash=get_password_hash(payload.password),
    )
    try:
        user_id = create_document("authuser", user)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Email is already registered")

    logger.info("Registered user %s", user_id)
    return TokenResponse(access_token=create_access_token({"sub": user_id}))


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest):
    user = find_document("authuser", {"email": payload.email.lower()})
    if not user or not verify_password(payload.password, user.get("password_hash", "")):
        logger.info("Failed login attempt")
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.get("is_active", True):
        raise HTTPException(status_code=403, detail="User is inactive")

    return TokenResponse(access_token=create_access_token({"sub": str(user["_id"])}))


@router.get("/me", response_model=PublicUser)
async def me(current_user: dict = Depends(get_current_user)):
    return public_user(current_user)
