"""
Flask CLI commands.

Commands:
- flask init-db: Create the schema
- flask register-company: Register a company and its administrator
"""

import click
from flask import current_app
from pdv_web.database import create_all, db_session
from pdv_web.exceptions import BusinessLogicError, RemoteStoreError
from pdv_web.services.company_service import Registration, register_company
from pdv_web.utils.tenant_key import format_cnpj


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables that do not exist yet."""
        create_all()
        click.echo(click.style('✅ Schema criado.', fg='green'))

    @app.cli.command('register-company')
    @click.option('--cnpj', prompt=True, help='CNPJ da empresa (14 dígitos)')
    @click.option('--razao-social', 'legal_name', prompt='Razão social', help='Razão social')
    @click.option('--nome-fantasia', 'trade_name', default='', help='Nome fantasia')
    @click.option('--cidade', 'city', default='', help='Cidade')
    @click.option('--uf', 'state', default='', help='UF')
    @click.option('--admin-nome', 'admin_name', prompt='Nome do administrador', help='Nome do administrador')
    @click.option('--admin-cpf', 'admin_cpf', prompt='CPF do administrador', help='CPF (login) do administrador')
    @click.option('--password', prompt='Senha', hide_input=True, confirmation_prompt=True, help='Senha do administrador')
    def register_company_command(cnpj, legal_name, trade_name, city, state, admin_name, admin_cpf, password):
        """Register a company and its admin user from the terminal."""
        data = Registration(
            cnpj=cnpj,
            legal_name=legal_name,
            trade_name=trade_name,
            city=city,
            state=state,
            admin_name=admin_name,
            admin_cpf=admin_cpf,
            password=password,
            password_confirm=password,
        )
        try:
            company = register_company(db_session, data, origin=current_app.config.get('RECORD_ORIGIN', 'web'))
        except (BusinessLogicError, RemoteStoreError) as e:
            click.echo(click.style(f'❌ {e.message}', fg='red'))
            return

        click.echo(click.style('\n✅ Empresa cadastrada!', fg='green', bold=True))
        click.echo(f'   CNPJ: {format_cnpj(company.cnpj)}')
        click.echo(f'   Empresa: {company.display_name}')
        click.echo(f'\n💡 Acesse: /{company.cnpj}')
