"""Company lookup and self-service registration."""
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from pdv_web.exceptions import BusinessLogicError, CompanyNotFoundError, RemoteStoreError
from pdv_web.models import Company
from pdv_web.services import store_rpc
from pdv_web.services.session_store import RecentTenantEntry, SessionStore
from pdv_web.utils.tenant_key import CPF_LENGTH, digits_or_none, is_complete, normalize, upper_or_none

logger = logging.getLogger(__name__)

ADMIN_ROLE = 'admin'
MIN_PASSWORD_LENGTH = 6


def find_company(db_session, tenant_key: str) -> Optional[Company]:
    """Company for the key, None when unknown. Short keys simply match nothing."""
    key = normalize(tenant_key)
    if not key:
        return None
    try:
        return db_session.query(Company).filter(Company.cnpj == key).first()
    except SQLAlchemyError as e:
        db_session.rollback()
        logger.error(f"[EMPRESA] Lookup failed for {key}: {e}")
        raise RemoteStoreError('Erro ao buscar empresa') from e


def add_recent_company(db_session, store: SessionStore, raw_cnpj: str) -> RecentTenantEntry:
    """
    Resolve a typed CNPJ and put it at the top of the recent companies list.

    Raises:
        BusinessLogicError: the CNPJ does not have 14 digits
        CompanyNotFoundError: no company is registered under it
        RemoteStoreError: the lookup failed
    """
    key = normalize(raw_cnpj)
    if not is_complete(key):
        raise BusinessLogicError('CNPJ deve ter 14 dígitos')

    company = find_company(db_session, key)
    if company is None:
        raise CompanyNotFoundError(key)

    return store.upsert_recent_tenant(key, company.display_name)


def reopen_recent_company(store: SessionStore, tenant_key: str) -> Optional[RecentTenantEntry]:
    """Refresh the last access of a listed company; unknown keys are ignored."""
    key = normalize(tenant_key)
    for entry in store.list_recent_tenants():
        if entry.tenant_key == key:
            return store.upsert_recent_tenant(key, entry.display_name)
    return None


@dataclass
class Registration:
    """Company + administrator data submitted on the registration page."""
    cnpj: str
    legal_name: str
    admin_name: str
    admin_cpf: str
    password: str
    password_confirm: str
    trade_name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


def _validate_registration(data: Registration) -> List[str]:
    """Validate registration fields and return list of errors."""
    errors = []
    if not is_complete(normalize(data.cnpj)):
        errors.append('CNPJ deve ter 14 dígitos')
    if not (data.legal_name or '').strip():
        errors.append('A razão social é obrigatória')
    if not (data.admin_name or '').strip():
        errors.append('O nome do administrador é obrigatório')
    if len(normalize(data.admin_cpf)) != CPF_LENGTH:
        errors.append('CPF deve ter 11 dígitos')
    if len(data.password or '') < MIN_PASSWORD_LENGTH:
        errors.append(f'A senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres')
    if data.password != data.password_confirm:
        errors.append('As senhas não conferem')
    return errors


def register_company(db_session, data: Registration, origin: str = 'web') -> Company:
    """
    Register (or re-register) a company and its administrator user.

    Runs upsert_empresa then upsert_usuario in one transaction.

    Raises:
        BusinessLogicError: invalid form data
        RemoteStoreError: the store rejected or failed the upserts
    """
    errors = _validate_registration(data)
    if errors:
        raise BusinessLogicError(', '.join(errors))

    cnpj = normalize(data.cnpj)
    cpf = normalize(data.admin_cpf)

    try:
        company = store_rpc.upsert_company(
            db_session,
            cnpj=cnpj,
            razao_social=data.legal_name.strip().upper(),
            nome_fantasia=upper_or_none(data.trade_name),
            cidade=upper_or_none(data.city),
            uf=upper_or_none(data.state),
            telefone=digits_or_none(data.phone),
            email=(data.email or '').strip() or None,
            origem=origin,
        )
        store_rpc.upsert_user(
            db_session,
            cnpj=cnpj,
            login=cpf,
            nome=data.admin_name.strip().upper(),
            senha=data.password,
            perfil=ADMIN_ROLE,
            email=(data.email or '').strip() or None,
            origem=origin,
            cpf=cpf,
        )
        db_session.commit()
    except SQLAlchemyError as e:
        db_session.rollback()
        logger.error(f"[EMPRESA] Registration failed for {cnpj}: {e}", exc_info=True)
        raise RemoteStoreError('Erro ao cadastrar') from e

    logger.info(f"[EMPRESA] Company {cnpj} registered with admin {cpf}")
    return company
