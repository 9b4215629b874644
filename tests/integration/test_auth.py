"""
Integration tests for per-company login, remember-me, logout and page gating.
"""
import json

from pdv_web.exceptions import RemoteStoreError
from pdv_web.services import store_rpc
from pdv_web.services.auth_service import CredentialVerifier, VerifiedUser

ADMIN_CPF = '529.982.247-25'
PASSWORD = 'senha123'


def _login(client, cnpj, password=PASSWORD, remember=False):
    data = {'cpf': ADMIN_CPF, 'password': password}
    if remember:
        data['remember'] = 'y'
    return client.post(f'/{cnpj}', data=data)


class TestLoginPage:

    def test_shows_company_name(self, client, company_a):
        response = client.get(f'/{company_a}')
        assert response.status_code == 200
        assert 'MERCADO ALFA' in response.get_data(as_text=True)

    def test_accepts_formatted_cnpj_in_url(self, client, company_a):
        response = client.get('/12.345.678-0001-95')
        assert response.status_code == 200
        assert 'MERCADO ALFA' in response.get_data(as_text=True)

    def test_url_without_digits_goes_home(self, client):
        response = client.get('/empresa')
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/')

    def test_logged_in_user_skips_login(self, authenticated_client, company_a):
        response = authenticated_client.get(f'/{company_a}')
        assert response.status_code == 302
        assert response.headers['Location'].endswith(f'/{company_a}/dashboard')


class TestLogin:

    def test_success_opens_dashboard(self, client, company_a):
        response = _login(client, company_a)
        assert response.status_code == 302
        assert response.headers['Location'].endswith(f'/{company_a}/dashboard')

        dashboard = client.get(f'/{company_a}/dashboard')
        assert dashboard.status_code == 200
        assert 'ANA ALFA' in dashboard.get_data(as_text=True)

    def test_session_blob_is_bound_to_company(self, client, company_a):
        _login(client, company_a)
        with client.session_transaction() as sess:
            active = json.loads(sess['mlpdv_session'])
        assert active['tenant_key'] == company_a
        assert active['role'] == 'admin'

    def test_wrong_password(self, client, company_a):
        response = _login(client, company_a, password='errada')
        assert response.status_code == 401
        assert 'CPF ou senha incorretos' in response.get_data(as_text=True)

        with client.session_transaction() as sess:
            assert 'mlpdv_session' not in sess

    def test_user_of_other_company_is_rejected(self, client, company_a, company_b):
        """Company A's admin CPF does not exist under company B."""
        response = _login(client, company_b)
        assert response.status_code == 401

    def test_unknown_company(self, client):
        response = _login(client, '11222333000181')
        assert response.status_code == 404
        assert 'Empresa não encontrada' in response.get_data(as_text=True)

    def test_missing_fields(self, client, company_a):
        response = client.post(f'/{company_a}', data={'cpf': '', 'password': ''})
        assert response.status_code == 400
        assert 'Informe o CPF' in response.get_data(as_text=True)

    def test_store_failure(self, app, client, company_a, monkeypatch):
        class DownVerifier(CredentialVerifier):
            def verify(self, tenant_key, login_identifier, secret):
                raise RemoteStoreError('Erro ao fazer login')

        monkeypatch.setitem(app.extensions, 'pdv_credential_verifier', DownVerifier())
        response = _login(client, company_a)
        assert response.status_code == 503
        assert 'Erro ao fazer login' in response.get_data(as_text=True)

    def test_login_replaces_previous_session(self, client, company_a, company_b, login_as):
        login_as(company_b, display_name='BRUNO BETA')
        _login(client, company_a)
        assert client.get(f'/{company_a}/dashboard').status_code == 200
        assert client.get(f'/{company_b}/dashboard').status_code == 302

    def test_attempts_are_counted(self, client, company_a):
        _login(client, company_a, password='errada')
        metrics = client.get('/metrics').get_data(as_text=True)
        assert 'pdv_login_attempts_total{outcome="rejected"}' in metrics


class TestRememberMe:

    def test_prefills_login_form(self, client, company_a):
        _login(client, company_a, remember=True)
        client.post(f'/{company_a}/sair')

        page = client.get(f'/{company_a}').get_data(as_text=True)
        assert '529.982.247-25' in page
        assert f'value="{PASSWORD}"' in page

    def test_never_logs_in_automatically(self, client, company_a):
        _login(client, company_a, remember=True)
        client.post(f'/{company_a}/sair')

        response = client.get(f'/{company_a}/dashboard')
        assert response.status_code == 302

    def test_login_without_remember_forgets(self, client, company_a):
        _login(client, company_a, remember=True)
        client.post(f'/{company_a}/sair')
        _login(client, company_a, remember=False)
        client.post(f'/{company_a}/sair')

        with client.session_transaction() as sess:
            assert f'mlpdv_credential:{company_a}' not in sess
        page = client.get(f'/{company_a}').get_data(as_text=True)
        assert f'value="{PASSWORD}"' not in page

    def test_password_is_encrypted_in_cookie(self, client, company_a):
        _login(client, company_a, remember=True)
        with client.session_transaction() as sess:
            blob = sess[f'mlpdv_credential:{company_a}']
        assert PASSWORD not in blob

    def test_many_companies_keep_cookie_small(self, app, client, session, monkeypatch):
        """Remembering dozens of companies keeps the cookie under the browser limit."""
        class AcceptingVerifier(CredentialVerifier):
            def verify(self, tenant_key, login_identifier, secret):
                return VerifiedUser(user_id=1, tenant_key=tenant_key, display_name='ANA', role='admin')

        monkeypatch.setitem(app.extensions, 'pdv_credential_verifier', AcceptingVerifier())

        keys = [f'{10000000 + i}0001{i:02d}' for i in range(30)]
        for i, key in enumerate(keys):
            store_rpc.upsert_company(session, cnpj=key, razao_social=f'EMPRESA {i:02d} LTDA')
        session.commit()

        for key in keys:
            client.post('/empresas', data={'cnpj': key})
            response = _login(client, key, remember=True)
            assert response.status_code == 302

        cookie = next(c for c in response.headers.getlist('Set-Cookie') if c.startswith('mlpdv='))
        assert len(cookie) < 4093

        assert client.get(f'/{keys[-1]}/dashboard').status_code == 200
        assert 'EMPRESA 29 LTDA' in client.get('/').get_data(as_text=True)
        with client.session_transaction() as sess:
            assert f'mlpdv_credential:{keys[0]}' not in sess
            assert f'mlpdv_credential:{keys[-1]}' in sess


class TestLogout:

    def test_logout_clears_session(self, authenticated_client, company_a):
        response = authenticated_client.post(f'/{company_a}/sair')
        assert response.status_code == 302
        assert response.headers['Location'].endswith(f'/{company_a}')

        assert authenticated_client.get(f'/{company_a}/dashboard').status_code == 302

    def test_logout_without_session(self, client, company_a):
        response = client.post(f'/{company_a}/sair')
        assert response.status_code == 302


class TestPageGating:

    def test_no_session_redirects_to_company_login(self, client, company_a):
        response = client.get(f'/{company_a}/dashboard')
        assert response.status_code == 302
        assert response.headers['Location'].endswith(f'/{company_a}')

    def test_session_of_a_opens_only_a(self, authenticated_client, company_a, company_b):
        assert authenticated_client.get(f'/{company_a}/dashboard').status_code == 200

        response = authenticated_client.get(f'/{company_b}/dashboard')
        assert response.status_code == 302
        assert response.headers['Location'].endswith(f'/{company_b}')

    def test_every_company_page_is_gated(self, client, company_a):
        for path in ('dashboard', 'produtos/', 'produtos/novo', 'clientes/', 'clientes/novo'):
            response = client.get(f'/{company_a}/{path}')
            assert response.status_code == 302, path

    def test_htmx_request_gets_hx_redirect(self, client, company_a):
        response = client.get(f'/{company_a}/produtos/', headers={'HX-Request': 'true'})
        assert response.headers['HX-Redirect'].endswith(f'/{company_a}')

    def test_unknown_path_goes_home(self, client):
        response = client.get('/nada/por/aqui/mesmo')
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/')
