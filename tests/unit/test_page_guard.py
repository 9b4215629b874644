"""Unit tests for the page guard state machine."""
import pytest

from pdv_web.middleware import GuardState, PageGuard
from pdv_web.services.session_store import MappingStorage, SecretBox, Session, SessionStore

COMPANY_A = '12345678000195'
COMPANY_B = '98765432000110'


@pytest.fixture
def store():
    return SessionStore(MappingStorage({}), SecretBox(secret_key='unit-test'))


def _login(store, tenant_key):
    store.set_active_session(Session(user_id=1, tenant_key=tenant_key, display_name='ANA', role='admin'))


class TestPageGuard:

    def test_starts_unchecked(self, store):
        assert PageGuard(store, COMPANY_A).state is GuardState.UNCHECKED

    def test_no_session_redirects(self, store):
        assert PageGuard(store, COMPANY_A).check() is GuardState.REDIRECTING

    def test_matching_session_authorizes(self, store):
        _login(store, COMPANY_A)
        guard = PageGuard(store, '12.345.678/0001-95')
        assert guard.check() is GuardState.AUTHORIZED
        assert guard.session.tenant_key == COMPANY_A

    def test_other_company_redirects(self, store):
        _login(store, COMPANY_A)
        assert PageGuard(store, COMPANY_B).check() is GuardState.REDIRECTING

    def test_empty_url_key_redirects(self, store):
        _login(store, COMPANY_A)
        assert PageGuard(store, '').check() is GuardState.REDIRECTING

    def test_outcome_is_final(self, store):
        guard = PageGuard(store, COMPANY_A)
        assert guard.check() is GuardState.REDIRECTING
        _login(store, COMPANY_A)
        assert guard.check() is GuardState.REDIRECTING

    def test_login_endpoint(self, app, store):
        with app.test_request_context():
            assert PageGuard(store, '12.345.678/0001-95').login_endpoint == f'/{COMPANY_A}'
            assert PageGuard(store, '').login_endpoint == '/'
