# retail_pos/core/auth.py
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from firebase_admin import auth as fb_auth

from retail_pos.config import get_firebase_app, settings
from retail_pos.schemas.principal import Principal

logger = logging.getLogger("pos.auth")

MOCK_TOKEN_PREFIX = "mock_jwt_token_"


def _extract_bearer_token(request: Request) -> Optional[str]:
    """
    Take the token from `Authorization: Bearer <id_token>`.
    Returns None when the header is missing or malformed.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    parts = auth_header.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def _decode_id_token(id_token: str) -> dict:
    """
    Verify a Firebase ID token (revocation checked).
    Mock tokens are accepted only when ALLOW_MOCK_TOKENS is on (local development).
    """
    if id_token.startswith(MOCK_TOKEN_PREFIX):
        if not settings.allow_mock_tokens:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Mock tokens are disabled.")
        return _decode_mock_token(id_token)

    try:
        return fb_auth.verify_id_token(id_token, app=get_firebase_app(), check_revoked=True)
    except fb_auth.ExpiredIdTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except fb_auth.RevokedIdTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session revoked")
    except Exception as exc:
        logger.warning("ID token rejected: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid Firebase ID token: {exc}"
        )


def _decode_mock_token(mock_token: str) -> dict:
    """
    Format: mock_jwt_token_<uid>
    """
    uid = mock_token[len(MOCK_TOKEN_PREFIX):]
    if not uid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid mock token format")
    return {
        "uid": uid,
        "user_id": uid,
        "email": None,
        "name": None,
        "firebase": {
            "sign_in_provider": "anonymous" if "anonymous" in uid else "password"
        },
        "admin": False,
    }


def _token_to_principal(decoded: dict) -> Principal:
    """
    - anonymous provider   → role='guest'
    - custom claim admin   → role='admin'
    - everyone else        → role='owner' (each account is one business)
    """
    uid = decoded.get("uid") or decoded.get("user_id")
    if not uid:
        raise HTTPException(status_code=401, detail="Token missing uid.")

    firebase_info = decoded.get("firebase") or {}
    provider = firebase_info.get("sign_in_provider")
    is_admin = bool(decoded.get("admin") is True)

    if provider == "anonymous":
        role = "guest"
    elif is_admin:
        role = "admin"
    else:
        role = "owner"

    return Principal(
        uid=uid,
        role=role,
        email=decoded.get("email"),
        display_name=decoded.get("name"),
    )

# --------- FastAPI Dependencies --------- #


async def get_principal(request: Request) -> Principal:
    """
    Token required: verify and return the Principal (guest/owner/admin).
    """
    token = _extract_bearer_token(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    decoded = _decode_id_token(token)
    return _token_to_principal(decoded)


def require_owner(principal: Principal = Depends(get_principal)) -> Principal:
    """
    Anonymous (guest) sessions cannot sell or touch inventory.
    """
    if principal.role == "guest":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Guest users are not allowed for this action."
        )
    return principal
