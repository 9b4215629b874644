import json
import pytest
from datetime import datetime, timezone

from pdv_web import create_app
from pdv_web.database import create_all, drop_all, get_session
from pdv_web.services import store_rpc

COMPANY_A = '12345678000195'
COMPANY_B = '98765432000110'
ADMIN_A_CPF = '52998224725'
ADMIN_B_CPF = '11144477735'
PASSWORD = 'senha123'


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app('config.TestingConfig')
    return app


@pytest.fixture(autouse=True)
def schema(app):
    """Fresh schema for every test (in-memory SQLite)."""
    create_all()
    yield
    get_session().remove()
    drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session():
    """Create database session for testing."""
    session = get_session()
    yield session
    session.rollback()
    session.close()


def _register(session, cnpj, razao_social, nome_fantasia, cpf, nome):
    store_rpc.upsert_company(session, cnpj=cnpj, razao_social=razao_social, nome_fantasia=nome_fantasia,
                             cidade='PORTO ALEGRE', uf='RS')
    store_rpc.upsert_user(session, cnpj=cnpj, login=cpf, nome=nome, senha=PASSWORD,
                          perfil='admin', cpf=cpf)
    session.commit()
    return cnpj


@pytest.fixture(scope='function')
def company_a(session):
    """First company with its admin user; returns the tenant key."""
    return _register(session, COMPANY_A, 'MERCADO ALFA LTDA', 'MERCADO ALFA', ADMIN_A_CPF, 'ANA ALFA')


@pytest.fixture(scope='function')
def company_b(session):
    """Second company for isolation tests; returns the tenant key."""
    return _register(session, COMPANY_B, 'BETA COMERCIO LTDA', None, ADMIN_B_CPF, 'BRUNO BETA')


@pytest.fixture(scope='function')
def login_as(client):
    """Write an active session blob for a company straight into the session cookie."""
    def _login(cnpj, user_id=1, display_name='ANA ALFA'):
        with client.session_transaction() as sess:
            sess['mlpdv_session'] = json.dumps({
                'user_id': user_id,
                'tenant_key': cnpj,
                'display_name': display_name,
                'role': 'admin',
                'permissions': [],
                'logged_at': datetime.now(timezone.utc).isoformat(),
            })
    return _login


@pytest.fixture(scope='function')
def authenticated_client(client, company_a, login_as):
    """Client logged in to company A."""
    login_as(company_a)
    return client
