"""
Main blueprint: company selection landing page, registration and health check.
"""
from typing import Tuple, Union

from flask import Blueprint, Response, current_app, flash, jsonify, redirect, render_template, url_for
from sqlalchemy import text

from pdv_web.database import get_session
from pdv_web.exceptions import BusinessLogicError, CompanyNotFoundError, RemoteStoreError
from pdv_web.forms.auth_forms import CompanyLookupForm, RegistrationForm
from pdv_web.middleware import get_session_store
from pdv_web.services.company_service import (
    Registration, add_recent_company, register_company, reopen_recent_company
)
from pdv_web.utils.tenant_key import normalize

main_bp = Blueprint('main', __name__)


def _render_index(form: CompanyLookupForm, status: int = 200) -> Tuple[str, int]:
    companies = get_session_store().list_recent_tenants()
    return render_template('main/index.html', companies=companies, form=form), status


@main_bp.route('/')
def index() -> Tuple[str, int]:
    """Landing page: recently accessed companies and the add-company form."""
    return _render_index(CompanyLookupForm())


@main_bp.route('/empresas', methods=['POST'])
def add_company() -> Union[Response, Tuple[str, int]]:
    """Look up a CNPJ, remember it and go to its login page."""
    form = CompanyLookupForm()
    if not form.validate_on_submit():
        for errors in form.errors.values():
            for error in errors:
                flash(error, 'danger')
        return _render_index(form, 400)

    try:
        entry = add_recent_company(get_session(), get_session_store(), form.cnpj.data)
    except (BusinessLogicError, CompanyNotFoundError) as e:
        flash(e.message, 'danger')
        return _render_index(form, e.status_code)
    except RemoteStoreError as e:
        flash(e.message, 'danger')
        return _render_index(form, e.status_code)

    return redirect(url_for('auth.login', cnpj=entry.tenant_key))


@main_bp.route('/empresas/<cnpj>/abrir', methods=['POST'])
def open_company(cnpj: str) -> Response:
    """Refresh the last access of a saved company and go to its login page."""
    key = normalize(cnpj)
    reopen_recent_company(get_session_store(), key)
    return redirect(url_for('auth.login', cnpj=key))


@main_bp.route('/empresas/<cnpj>/remover', methods=['POST'])
def remove_company(cnpj: str) -> Response:
    """Remove a company from the saved list (its data is untouched)."""
    get_session_store().remove_recent_tenant(cnpj)
    flash('Empresa removida dos acessos salvos.', 'info')
    return redirect(url_for('main.index'))


@main_bp.route('/registro', methods=['GET', 'POST'])
def register() -> Union[Response, Tuple[str, int], str]:
    """Register a company and its administrator user."""
    form = RegistrationForm()

    if form.validate_on_submit():
        data = Registration(
            cnpj=form.cnpj.data,
            legal_name=form.legal_name.data,
            trade_name=form.trade_name.data,
            city=form.city.data,
            state=form.state.data,
            phone=form.phone.data,
            email=form.email.data,
            admin_name=form.admin_name.data,
            admin_cpf=form.admin_cpf.data,
            password=form.password.data,
            password_confirm=form.password_confirm.data,
        )
        try:
            company = register_company(
                get_session(), data, origin=current_app.config.get('RECORD_ORIGIN', 'web')
            )
        except (BusinessLogicError, RemoteStoreError) as e:
            flash(e.message, 'danger')
            return render_template('main/register.html', form=form), e.status_code

        return render_template('main/register_done.html', company=company)

    if form.errors:
        for errors in form.errors.values():
            for error in errors:
                flash(error, 'danger')
        return render_template('main/register.html', form=form), 400

    return render_template('main/register.html', form=form)


@main_bp.route('/health')
def health():
    """
    Health check endpoint that validates database connection.

    Returns:
        200: Healthy (DB connected)
        500: Unhealthy (DB error)
    """
    try:
        result = get_session().execute(text("SELECT 1 as health_check"))
        row = result.fetchone()

        if row and row[0] == 1:
            return jsonify({'status': 'healthy', 'database': 'connected'}), 200
        return jsonify({'status': 'unhealthy', 'database': 'error'}), 500

    except Exception as e:
        current_app.logger.error(f"Health check failed: {e}")
        return jsonify({
            'status': 'unhealthy',
            'database': 'disconnected',
            'message': 'Failed to connect to database'
        }), 500
