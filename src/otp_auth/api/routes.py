"""Auth API router.

Endpoints
---------
POST /auth/request-otp   → issue a code for an email/phone
POST /auth/verify-otp    → exchange a code for a session token
GET  /auth/me            → identity behind a bearer token
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, Request
from pydantic import BaseModel

from otp_auth.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ── Request / response models ────────────────────────────
# Fields are optional so that a missing value surfaces as ``invalid_input``
# from the service rather than as a framework validation error.

class OTPRequest(BaseModel):
    identifier: str | None = None


class OTPRequestResponse(BaseModel):
    message: str


class OTPVerifyRequest(BaseModel):
    identifier: str | None = None
    otp: str | None = None


class OTPVerifyResponse(BaseModel):
    message: str
    token: str


class UserInfo(BaseModel):
    id: int
    identifier: str
    name: str


class MeResponse(BaseModel):
    user: UserInfo


# ── Dependencies ─────────────────────────────────────────

def get_auth_service(request: Request) -> AuthService:
    """Return the service instance the app was created with."""
    return request.app.state.auth_service


def parse_bearer(authorization: str | None) -> str | None:
    """Extract the token from ``Bearer <token>``; ``None`` if malformed."""
    parts = (authorization or "").split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        return None
    return parts[1]


# ── Endpoints ────────────────────────────────────────────

@router.post("/request-otp", response_model=OTPRequestResponse)
async def request_otp(
    body: OTPRequest, service: AuthService = Depends(get_auth_service)
) -> dict[str, Any]:
    """Generate a code for the identifier and hand it to the notifier."""
    message = await service.request_otp(body.identifier)
    return {"message": message}


@router.post("/verify-otp", response_model=OTPVerifyResponse)
async def verify_otp(
    body: OTPVerifyRequest, service: AuthService = Depends(get_auth_service)
) -> dict[str, Any]:
    """Validate a code and start a session."""
    token = await service.verify_otp(body.identifier, body.otp)
    return {"message": "OTP verified successfully.", "token": token}


@router.get("/me", response_model=MeResponse)
async def me(
    authorization: str | None = Header(None),
    service: AuthService = Depends(get_auth_service),
) -> dict[str, Any]:
    """Return the user bound to the bearer token."""
    identity = service.who_am_i(parse_bearer(authorization))
    return {"user": identity.as_dict()}
