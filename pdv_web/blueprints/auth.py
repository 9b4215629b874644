"""
Authentication blueprint: per-company login and logout.

The login page lives at the company's root path (/<cnpj>), so every
company-scoped URL has the CNPJ as its first segment.
"""
import logging
from typing import Tuple, Union

from flask import Blueprint, Response, flash, redirect, render_template, request, url_for

from pdv_web.blueprints.metrics import login_attempts_total
from pdv_web.database import get_session
from pdv_web.exceptions import CredentialRejectedError, RemoteStoreError
from pdv_web.forms.auth_forms import LoginForm
from pdv_web.middleware import get_session_store
from pdv_web.services import auth_service
from pdv_web.services.company_service import find_company
from pdv_web.utils.tenant_key import format_cpf, normalize

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


def _load_company(tenant_key: str):
    """Company for the login header; a failed lookup only hides the name."""
    try:
        return find_company(get_session(), tenant_key)
    except RemoteStoreError as e:
        flash(e.message, 'warning')
        return None


@auth_bp.route('/<cnpj>', methods=['GET', 'POST'])
def login(cnpj: str) -> Union[Response, Tuple[str, int], str]:
    """Login page for one company (CPF + password)."""
    tenant_key = normalize(cnpj)
    if not tenant_key:
        flash('CNPJ não informado na URL', 'warning')
        return redirect(url_for('main.index'))

    store = get_session_store()

    # Already logged in to this company
    active = store.get_active_session()
    if request.method == 'GET' and active and active.tenant_key == tenant_key:
        return redirect(url_for('dashboard.index', cnpj=tenant_key))

    company = _load_company(tenant_key)
    form = LoginForm()

    if request.method == 'GET':
        remembered = store.get_remembered_credential(tenant_key)
        if remembered:
            form.cpf.data = format_cpf(remembered.login_identifier)
            form.remember.data = True
        return render_template(
            'auth/login.html', form=form, company=company, tenant_key=tenant_key,
            remembered_secret=remembered.secret if remembered else None
        )

    if company is None:
        flash('Empresa não encontrada', 'danger')
        return render_template('auth/login.html', form=form, company=None, tenant_key=tenant_key), 404

    if not form.validate_on_submit():
        for errors in form.errors.values():
            for error in errors:
                flash(error, 'danger')
        return render_template('auth/login.html', form=form, company=company, tenant_key=tenant_key), 400

    try:
        auth_service.login(
            store,
            auth_service.get_credential_verifier(),
            tenant_key,
            form.cpf.data,
            form.password.data,
            remember=form.remember.data,
        )
    except CredentialRejectedError as e:
        login_attempts_total.labels(outcome='rejected').inc()
        flash(e.message, 'danger')
        return render_template('auth/login.html', form=form, company=company, tenant_key=tenant_key), e.status_code
    except RemoteStoreError as e:
        login_attempts_total.labels(outcome='error').inc()
        flash(e.message, 'danger')
        return render_template('auth/login.html', form=form, company=company, tenant_key=tenant_key), e.status_code

    login_attempts_total.labels(outcome='success').inc()
    return redirect(url_for('dashboard.index', cnpj=tenant_key))


@auth_bp.route('/<cnpj>/sair', methods=['POST'])
def logout(cnpj: str) -> Response:
    """Logout and return to the company's login page."""
    auth_service.logout(get_session_store())
    flash('Sessão encerrada.', 'info')
    return redirect(url_for('auth.login', cnpj=normalize(cnpj)))
