"""
Store procedures shared with the desktop POS.

These are the server-side routines of the data store: credential
verification and the registration upserts. Callers pass already normalized
digits; the procedures do not commit, the caller owns the transaction.
"""
import logging
from typing import Any, Dict, List, Optional

from pdv_web.models import AppUser, Company

logger = logging.getLogger(__name__)


def verify_user(db_session, cnpj: str, login: str, secret: str) -> List[Dict[str, Any]]:
    """
    verificar_usuario: check a login + password against a company.

    Returns:
        A one-row list with id, cnpj, nome, perfil and permissoes, or an
        empty list when the pair does not match an active user.
    """
    user = db_session.query(AppUser).filter(
        AppUser.cnpj == cnpj,
        AppUser.login == login,
        AppUser.active.is_(True)
    ).first()

    if not user or not user.check_password(secret):
        return []

    return [{
        'id': user.id,
        'cnpj': user.cnpj,
        'nome': user.name,
        'perfil': user.role,
        'permissoes': list(user.permissions or []),
    }]


def upsert_company(db_session, cnpj: str, razao_social: str, nome_fantasia: Optional[str] = None,
                   cidade: Optional[str] = None, uf: Optional[str] = None,
                   telefone: Optional[str] = None, email: Optional[str] = None,
                   origem: str = 'web') -> Company:
    """upsert_empresa: create the company or refresh its registration data."""
    company = db_session.query(Company).filter(Company.cnpj == cnpj).first()
    if company is None:
        company = Company(cnpj=cnpj, origin=origem)
        db_session.add(company)
        logger.info(f"[RPC] Creating company {cnpj}")
    else:
        logger.info(f"[RPC] Updating company {cnpj}")

    company.legal_name = razao_social
    company.trade_name = nome_fantasia
    company.city = cidade
    company.state = uf
    company.phone = telefone
    company.email = email
    db_session.flush()
    return company


def upsert_user(db_session, cnpj: str, login: str, nome: str, senha: str,
                perfil: str = 'operador', email: Optional[str] = None,
                origem: str = 'web', cpf: Optional[str] = None,
                permissoes: Optional[List[str]] = None) -> AppUser:
    """upsert_usuario: create the user for (cnpj, login) or reset its data and password."""
    user = db_session.query(AppUser).filter(
        AppUser.cnpj == cnpj,
        AppUser.login == login
    ).first()
    if user is None:
        user = AppUser(cnpj=cnpj, login=login, origin=origem)
        db_session.add(user)

    user.name = nome
    user.role = perfil
    user.email = email
    user.cpf = cpf
    user.permissions = permissoes if permissoes is not None else (user.permissions or [])
    user.active = True
    user.set_password(senha)
    db_session.flush()
    return user
