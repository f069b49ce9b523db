"""
Authentication dependencies for FastAPI endpoints.

This module provides FastAPI dependency functions for validating Supabase
access tokens and verifying user identity.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, Header, HTTPException

from charasphere.api.config import SUPABASE_JWT_AUDIENCE, SUPABASE_JWT_SECRET
from charasphere.utils.services import player_service

logger = logging.getLogger(__name__)

JWT_ALGORITHMS = ["HS256"]


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a Supabase access token.

    Args:
        token: Encoded JWT from the Authorization header

    Returns:
        The token claims, or None if the token is invalid, expired or has no subject
    """
    if not SUPABASE_JWT_SECRET:
        logger.error("JWT secret not available for token validation")
        return None

    try:
        payload = jwt.decode(
            token,
            SUPABASE_JWT_SECRET,
            algorithms=JWT_ALGORITHMS,
            audience=SUPABASE_JWT_AUDIENCE,
        )
    except jwt.ExpiredSignatureError:
        logger.warning("Access token expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid access token: {e}")
        return None

    if not payload.get("sub"):
        logger.warning("Access token has no subject")
        return None
    return payload


def extract_token_from_header(authorization: Optional[str]) -> Optional[str]:
    """Extract the bearer token from an Authorization header."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[7:].strip()
    return token or None


async def get_validated_user(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> Dict[str, Any]:
    """
    FastAPI dependency that validates the Supabase bearer token.
    Returns the decoded claims; the user id is in ``sub``.
    """
    if not authorization:
        logger.warning("No authorization header provided")
        raise HTTPException(status_code=401, detail="Authorization header required")

    token = extract_token_from_header(authorization)
    if not token:
        logger.warning("Malformed authorization header")
        raise HTTPException(
            status_code=401, detail="Invalid authorization format, expected 'Bearer <token>'"
        )

    payload = decode_access_token(token)
    if payload is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return payload


async def get_player(validated_user: Dict[str, Any] = Depends(get_validated_user)) -> Dict[str, Any]:
    """
    Like get_validated_user, but also creates the player's stats row on first sight.
    """
    await asyncio.to_thread(
        player_service.ensure_player_stats, validated_user["sub"], validated_user.get("email")
    )
    return validated_user


async def verify_user_match(
    request_user_id: Optional[str], validated_user: Dict[str, Any]
) -> str:
    """
    Verify that the user id carried by a request matches the authenticated user.
    Returns the user id if the match is successful.
    """
    if not request_user_id:
        raise HTTPException(status_code=400, detail="User ID is required")

    auth_user_id = validated_user.get("sub")
    if auth_user_id != request_user_id:
        logger.warning(f"User ID mismatch (auth: {auth_user_id}, request: {request_user_id})")
        raise HTTPException(status_code=403, detail="Unauthorized request")

    return auth_user_id
