from __future__ import annotations

from dataclasses import dataclass

import structlog
from fastapi import Depends, HTTPException, Request

from docmarket.core.config import get_settings
from docmarket.db.session import Database
from docmarket.services.document_store import DocumentStore
from docmarket.services.internal_auth import (
    extract_client_ip,
    is_client_ip_allowed,
    is_internal_request_authenticated,
)
from docmarket.services.receipts_render import ReceiptRenderer

logger = structlog.get_logger(__name__)

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"
CALLER_ROLES = {"user", "admin"}


@dataclass(frozen=True, slots=True)
class CallerIdentity:
    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_receipt_renderer(request: Request) -> ReceiptRenderer:
    return request.app.state.receipt_renderer


def get_document_store(request: Request) -> DocumentStore:
    return request.app.state.document_store


def assert_gateway_access(request: Request) -> None:
    settings = get_settings()
    client_ip = extract_client_ip(request, trusted_proxies=settings.internal_api_trusted_proxies)

    if not is_client_ip_allowed(client_ip=client_ip, allowlist=settings.internal_api_allowlist):
        logger.warning("gateway_auth_failed", reason="ip_not_allowed", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})

    if not is_internal_request_authenticated(request, expected_token=settings.internal_api_token):
        logger.warning("gateway_auth_failed", reason="invalid_credentials", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})


def parse_caller_identity(*, raw_user_id: str | None, raw_role: str | None) -> CallerIdentity | None:
    try:
        user_id = int((raw_user_id or "").strip())
    except ValueError:
        return None
    if user_id <= 0:
        return None

    role = (raw_role or "user").strip().lower() or "user"
    if role not in CALLER_ROLES:
        return None
    return CallerIdentity(user_id=user_id, role=role)


def get_caller(request: Request) -> CallerIdentity:
    assert_gateway_access(request)
    caller = parse_caller_identity(
        raw_user_id=request.headers.get(USER_ID_HEADER),
        raw_role=request.headers.get(USER_ROLE_HEADER),
    )
    if caller is None:
        raise HTTPException(status_code=401, detail={"code": "E_UNAUTHENTICATED"})
    return caller


def require_admin(caller: CallerIdentity = Depends(get_caller)) -> CallerIdentity:
    if not caller.is_admin:
        raise HTTPException(status_code=403, detail={"code": "E_ADMIN_REQUIRED"})
    return caller
