"""Middleware for the per-company session gate."""
import enum
from functools import wraps
from typing import Optional

from flask import current_app, flash, g, redirect, request, session, url_for

from pdv_web.services.session_store import MappingStorage, SecretBox, Session, SessionStore
from pdv_web.utils.tenant_key import normalize


def get_session_store() -> SessionStore:
    """
    SessionStore over the signed session cookie for the current request.

    Cached on g so every access in a request shares one instance.
    """
    store = g.get('session_store')
    if store is None:
        session.permanent = True
        secret_box = SecretBox(
            key=current_app.config.get('REMEMBER_ME_KEY'),
            secret_key=current_app.config['SECRET_KEY'],
        )
        store = SessionStore(
            MappingStorage(session),
            secret_box,
            prefix=current_app.config.get('STORAGE_KEY_PREFIX', 'mlpdv'),
            max_recent=current_app.config.get('RECENT_COMPANIES_LIMIT', 10),
            max_credentials=current_app.config.get('REMEMBERED_CREDENTIALS_LIMIT', 5),
        )
        g.session_store = store
    return store


class GuardState(enum.Enum):
    """Page guard states."""
    UNCHECKED = 'unchecked'
    AUTHORIZED = 'authorized'
    REDIRECTING = 'redirecting'


class PageGuard:
    """
    Gate for a company-scoped page.

    Starts UNCHECKED; check() moves to AUTHORIZED only when the active
    session belongs to the company in the URL, and to REDIRECTING in every
    other case (no session, another company's session, empty URL key). Both
    outcomes are final for the page.
    """

    def __init__(self, store: SessionStore, url_tenant: Optional[str]):
        self.store = store
        self.tenant_key = normalize(url_tenant)
        self.state = GuardState.UNCHECKED
        self.session: Optional[Session] = None

    def check(self) -> GuardState:
        if self.state is not GuardState.UNCHECKED:
            return self.state

        active = self.store.get_active_session()
        if self.tenant_key and active is not None and active.tenant_key == self.tenant_key:
            self.session = active
            self.state = GuardState.AUTHORIZED
        else:
            self.state = GuardState.REDIRECTING
        return self.state

    @property
    def login_endpoint(self) -> str:
        """Where a REDIRECTING guard sends the user."""
        if not self.tenant_key:
            return url_for('main.index')
        return url_for('auth.login', cnpj=self.tenant_key)


def require_tenant_session(f):
    """
    Decorator: require an active session for the company in the URL.

    The view must take a `cnpj` URL parameter. On success g.tenant_key and
    g.pdv_session are set; otherwise the user is sent to the company's
    login page. Handles HTMX requests with an HX-Redirect header.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        guard = PageGuard(get_session_store(), kwargs.get('cnpj'))
        if guard.check() is GuardState.REDIRECTING:
            target = guard.login_endpoint
            if request.headers.get('HX-Request'):
                response = redirect(target)
                response.headers['HX-Redirect'] = target
                return response

            flash('Faça login para acessar esta página.', 'warning')
            return redirect(target)

        g.tenant_key = guard.tenant_key
        g.pdv_session = guard.session
        return f(*args, **kwargs)
    return decorated_function
