"""FastAPI dependency injection helpers."""
from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Annotated, AsyncIterator, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from roadside_chat.application.dto.principal import Principal
from roadside_chat.application.exceptions import UnauthorizedError
from roadside_chat.application.ports.auth import TokenVerifier
from roadside_chat.application.uow import UnitOfWork
from roadside_chat.config import settings
from roadside_chat.infrastructure.auth.hs256_verifier import HS256Verifier
from roadside_chat.infrastructure.auth.jwks_verifier import JWKSVerifier
from roadside_chat.infrastructure.db.session import uow_scope
from roadside_chat.infrastructure.ws.manager import ConnectionManager

_bearer_scheme = HTTPBearer()

UoWFactory = Callable[[], AbstractAsyncContextManager[UnitOfWork]]


def get_uow_factory() -> UoWFactory:
    """Websocket handlers open one Unit of Work per inbound event."""
    return uow_scope


UoWFactoryDep = Annotated[UoWFactory, Depends(get_uow_factory)]


async def get_uow(factory: UoWFactoryDep) -> AsyncIterator[UnitOfWork]:
    async with factory() as uow:
        yield uow


UoWDep = Annotated[UnitOfWork, Depends(get_uow)]


_hub = ConnectionManager()


def get_hub() -> ConnectionManager:
    return _hub


HubDep = Annotated[ConnectionManager, Depends(get_hub)]


def _get_verifier() -> TokenVerifier:
    if settings.JWT_VERIFY_MODE == "jwks":
        assert settings.JWKS_URL, "JWKS_URL must be set when JWT_VERIFY_MODE=jwks"
        return JWKSVerifier(settings.JWKS_URL)
    return HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)


_verifier: TokenVerifier | None = None


def get_verifier() -> TokenVerifier:
    global _verifier  # noqa: PLW0603
    if _verifier is None:
        _verifier = _get_verifier()
    return _verifier


VerifierDep = Annotated[TokenVerifier, Depends(get_verifier)]


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(_bearer_scheme)],
    verifier: VerifierDep,
) -> Principal:
    try:
        return await verifier.verify(credentials.credentials)
    except UnauthorizedError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.detail,
        ) from exc


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


async def get_current_operator(principal: CurrentPrincipal) -> Principal:
    if settings.ASSIST_REQUIRE_OPERATOR_ROLE and not principal.is_operator:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Operator access required")
    return principal


CurrentOperator = Annotated[Principal, Depends(get_current_operator)]
