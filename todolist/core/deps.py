"""Dépendances d'authentification (extraction du bearer token + vérification)."""

import logging
from typing import Optional

from fastapi import Depends, Header, Request

from todolist.core.errors import AuthenticationFailed
from todolist.core.security import AuthService, Identity, TokenError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Retourne le token si le header suit le schéma Bearer, sinon None."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


def require_identity(
    request: Request,
    authorization: Optional[str] = Header(None),
    auth: AuthService = Depends(get_auth_service),
) -> Identity:
    token = extract_bearer_token(authorization)
    if token is None:
        raise AuthenticationFailed("No token provided")

    try:
        identity = auth.verify_token(token)
    except TokenError as exc:
        # même réponse pour toutes les causes, la cause ne va que dans les logs
        logger.info(
            "Rejected %s token on %s %s", exc.kind, request.method, request.url.path
        )
        raise AuthenticationFailed("Invalid or expired token")

    request.state.identity = identity
    return identity


def optional_identity(
    request: Request,
    authorization: Optional[str] = Header(None),
    auth: AuthService = Depends(get_auth_service),
) -> Optional[Identity]:
    token = extract_bearer_token(authorization)
    if token is None:
        return None

    try:
        identity = auth.verify_token(token)
    except TokenError as exc:
        logger.debug("Ignoring %s token on %s", exc.kind, request.url.path)
        return None

    request.state.identity = identity
    return identity
