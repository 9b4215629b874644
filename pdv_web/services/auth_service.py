"""
Authentication service.

Credential checks go through a CredentialVerifier so that a throttling or
lockout policy can wrap the store-backed verifier without touching the login
view.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from pdv_web.exceptions import CredentialRejectedError, RemoteStoreError
from pdv_web.services import store_rpc
from pdv_web.services.session_store import Session, SessionStore, utcnow
from pdv_web.utils.tenant_key import normalize

logger = logging.getLogger(__name__)


@dataclass
class VerifiedUser:
    """User record returned by a successful verification."""
    user_id: Any
    tenant_key: str
    display_name: str
    role: str
    permissions: List[str] = field(default_factory=list)


class CredentialVerifier:
    """Checks a login identifier + password for a company."""

    def verify(self, tenant_key: str, login_identifier: str, secret: str) -> Optional[VerifiedUser]:
        """Return the user on success, None when the pair is rejected."""
        raise NotImplementedError


class StoreCredentialVerifier(CredentialVerifier):
    """Delegates to the store's verificar_usuario procedure."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def verify(self, tenant_key: str, login_identifier: str, secret: str) -> Optional[VerifiedUser]:
        db_session = self.session_factory()
        try:
            rows = store_rpc.verify_user(db_session, tenant_key, login_identifier, secret)
        except SQLAlchemyError as e:
            db_session.rollback()
            logger.error(f"[AUTH] verify_user failed for {tenant_key}: {e}")
            raise RemoteStoreError('Erro ao fazer login') from e

        if not rows:
            return None

        row = rows[0]
        return VerifiedUser(
            user_id=row['id'],
            tenant_key=normalize(row['cnpj']),
            display_name=row['nome'],
            role=row['perfil'],
            permissions=row.get('permissoes') or [],
        )


def get_credential_verifier() -> CredentialVerifier:
    """Verifier registered on the app (see create_app)."""
    return current_app.extensions['pdv_credential_verifier']


def login(store: SessionStore, verifier: CredentialVerifier, tenant_key: str,
          login_identifier: str, secret: str, remember: bool = False) -> Session:
    """
    Verify credentials and open the session for the company.

    The new session replaces any existing one. The remembered credential slot
    for this company is written when `remember` is set and cleared otherwise.

    Raises:
        CredentialRejectedError: the pair was not accepted
        RemoteStoreError: the store could not be reached
    """
    tenant_key = normalize(tenant_key)
    login_identifier = normalize(login_identifier)

    user = verifier.verify(tenant_key, login_identifier, secret)
    if user is None:
        logger.info(f"[AUTH] Rejected login {login_identifier} for {tenant_key}")
        raise CredentialRejectedError()

    active = Session(
        user_id=user.user_id,
        tenant_key=user.tenant_key or tenant_key,
        display_name=user.display_name,
        role=user.role,
        permissions=list(user.permissions),
        logged_at=utcnow(),
    )
    store.set_active_session(active)

    if remember:
        store.set_remembered_credential(tenant_key, login_identifier, secret)
    else:
        store.clear_remembered_credential(tenant_key)

    logger.info(f"[AUTH] User {user.user_id} logged in to {tenant_key}")
    return active


def logout(store: SessionStore) -> None:
    """Drop the active session; safe when none exists."""
    store.clear_active_session()
