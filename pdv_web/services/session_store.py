"""
Browser-persisted session state for the multi-tenant back office.

Three kinds of slots live in the client's persisted key/value storage (the
signed Flask session cookie at runtime, a plain dict in tests):

- the active session: at most one, bound to one company;
- one remembered-credential slot per company (auto-fill only);
- the list of recently accessed companies.

Every slot is an opaque JSON string. Corrupt or unreadable blobs are treated
as absent: the worst outcome is "not logged in" or "no history", never an
exception. The next successful write replaces the bad blob.
"""
import base64
import hashlib
import json
import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, MutableMapping, Optional

from cryptography.fernet import Fernet, InvalidToken

from pdv_web.utils.tenant_key import normalize

logger = logging.getLogger(__name__)

MAX_RECENT_TENANTS = 10
MAX_REMEMBERED_CREDENTIALS = 5


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Session:
    """Authenticated identity bound to one company."""
    user_id: Any
    tenant_key: str
    display_name: str
    role: str
    permissions: List[str] = field(default_factory=list)
    logged_at: datetime = field(default_factory=utcnow)


@dataclass
class RememberedCredential:
    """Login identifier and password kept for auto-filling one company's login form."""
    tenant_key: str
    login_identifier: str
    secret: str


@dataclass
class RecentTenantEntry:
    """A company the user opened recently."""
    tenant_key: str
    display_name: str
    last_access: datetime


class KeyValueStorage:
    """Persistence collaborator: opaque string blobs by key."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class MappingStorage(KeyValueStorage):
    """Adapts any mutable mapping (flask.session, a dict) to KeyValueStorage."""

    def __init__(self, mapping: MutableMapping):
        self._mapping = mapping

    def get(self, key: str) -> Optional[str]:
        return self._mapping.get(key)

    def set(self, key: str, value: str) -> None:
        self._mapping[key] = value

    def remove(self, key: str) -> None:
        self._mapping.pop(key, None)


class SecretBox:
    """
    Fernet encryption for remembered passwords.

    The key comes from REMEMBER_ME_KEY, or is derived from SECRET_KEY so the
    feature works without extra configuration.
    """

    def __init__(self, key: Optional[str] = None, secret_key: Optional[str] = None):
        if key:
            fernet_key = key.encode()
        else:
            digest = hashlib.sha256((secret_key or '').encode()).digest()
            fernet_key = base64.urlsafe_b64encode(digest)
        self._fernet = Fernet(fernet_key)

    def seal(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode()).decode()

    def open(self, token: str) -> Optional[str]:
        """Decrypt; None when the token is not ours or was tampered with."""
        try:
            return self._fernet.decrypt(token.encode()).decode()
        except (InvalidToken, ValueError, TypeError):
            return None


def _parse_datetime(value: Any) -> datetime:
    if not isinstance(value, str):
        raise ValueError(f'invalid timestamp: {value!r}')
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class SessionStore:
    """
    Typed accessors over the persisted key/value slots.

    The backing storage may be size-capped (a browser cookie holds ~4 KB),
    so the recent list and the remembered credentials are bounded: past the
    limit the least recently written entries are dropped.

    Args:
        storage: KeyValueStorage backing the slots
        secret_box: SecretBox used for remembered passwords
        prefix: key prefix shared by all slots
        clock: callable returning the current aware datetime (injectable for tests)
        max_recent: how many recent companies are kept
        max_credentials: how many companies may have a remembered credential
    """

    def __init__(self, storage: KeyValueStorage, secret_box: SecretBox,
                 prefix: str = 'mlpdv', clock: Callable[[], datetime] = utcnow,
                 max_recent: int = MAX_RECENT_TENANTS,
                 max_credentials: int = MAX_REMEMBERED_CREDENTIALS):
        self.storage = storage
        self.secret_box = secret_box
        self.prefix = prefix
        self.clock = clock
        self.max_recent = max(1, max_recent)
        self.max_credentials = max(1, max_credentials)

    # -- keys ---------------------------------------------------------------

    @property
    def session_key(self) -> str:
        return f'{self.prefix}_session'

    @property
    def recent_key(self) -> str:
        return f'{self.prefix}_saved_companies'

    def credential_key(self, tenant_key: str) -> str:
        return f'{self.prefix}_credential:{normalize(tenant_key)}'

    @property
    def credential_index_key(self) -> str:
        return f'{self.prefix}_credential_index'

    # -- blob helpers -------------------------------------------------------

    def _read_json(self, key: str) -> Any:
        """Load a JSON blob; None if absent or corrupt."""
        raw = self.storage.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"[SESSION] Ignoring unreadable blob at '{key}'")
            return None

    def _write_json(self, key: str, value: Any) -> None:
        self.storage.set(key, json.dumps(value))

    # -- active session -----------------------------------------------------

    def get_active_session(self) -> Optional[Session]:
        data = self._read_json(self.session_key)
        if data is None:
            return None
        try:
            permissions = data.get('permissions') or []
            if not isinstance(permissions, list):
                raise ValueError('permissions must be a list')
            return Session(
                user_id=data['user_id'],
                tenant_key=normalize(data['tenant_key']),
                display_name=str(data['display_name']),
                role=str(data['role']),
                permissions=permissions,
                logged_at=_parse_datetime(data['logged_at']),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"[SESSION] Ignoring malformed active session: {e}")
            return None

    def set_active_session(self, session: Session) -> None:
        """Replace any existing session (no merge)."""
        data = asdict(session)
        data['tenant_key'] = normalize(session.tenant_key)
        data['logged_at'] = session.logged_at.isoformat()
        self._write_json(self.session_key, data)

    def clear_active_session(self) -> None:
        self.storage.remove(self.session_key)

    # -- remembered credentials ---------------------------------------------

    def get_remembered_credential(self, tenant_key: str) -> Optional[RememberedCredential]:
        key = normalize(tenant_key)
        data = self._read_json(self.credential_key(key))
        if data is None:
            return None
        try:
            secret = self.secret_box.open(data['secret'])
            if secret is None:
                raise ValueError('secret cannot be decrypted')
            return RememberedCredential(
                tenant_key=key,
                login_identifier=str(data['login_identifier']),
                secret=secret,
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"[SESSION] Ignoring malformed credential for {key}: {e}")
            return None

    def _load_credential_index(self) -> List[str]:
        """Tenant keys with a remembered credential, most recently written first."""
        data = self._read_json(self.credential_index_key)
        if not isinstance(data, list):
            return []
        keys = []
        for item in data:
            key = normalize(item) if isinstance(item, str) else ''
            if key and key not in keys:
                keys.append(key)
        return keys

    def set_remembered_credential(self, tenant_key: str, identifier: str, secret: str) -> None:
        """Write the slot; the oldest slots beyond max_credentials are cleared."""
        key = normalize(tenant_key)
        self._write_json(self.credential_key(key), {
            'tenant_key': key,
            'login_identifier': identifier,
            'secret': self.secret_box.seal(secret),
        })

        index = [key] + [k for k in self._load_credential_index() if k != key]
        for evicted in index[self.max_credentials:]:
            self.storage.remove(self.credential_key(evicted))
            logger.info(f"[SESSION] Forgot remembered credential for {evicted} (limit {self.max_credentials})")
        self._write_json(self.credential_index_key, index[:self.max_credentials])

    def clear_remembered_credential(self, tenant_key: str) -> None:
        key = normalize(tenant_key)
        self.storage.remove(self.credential_key(key))
        index = self._load_credential_index()
        if key in index:
            self._write_json(self.credential_index_key, [k for k in index if k != key])

    # -- recent tenants -----------------------------------------------------

    def _load_recent(self) -> List[RecentTenantEntry]:
        data = self._read_json(self.recent_key)
        if not isinstance(data, list):
            if data is not None:
                logger.warning("[SESSION] Ignoring malformed recent companies list")
            return []

        entries: Dict[str, RecentTenantEntry] = {}
        for item in data:
            try:
                entry = RecentTenantEntry(
                    tenant_key=normalize(item['tenant_key']),
                    display_name=str(item['display_name']),
                    last_access=_parse_datetime(item['last_access']),
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"[SESSION] Skipping malformed recent company: {e}")
                continue
            if entry.tenant_key and entry.tenant_key not in entries:
                entries[entry.tenant_key] = entry
        return list(entries.values())

    def _save_recent(self, entries: List[RecentTenantEntry]) -> None:
        self._write_json(self.recent_key, [
            {
                'tenant_key': e.tenant_key,
                'display_name': e.display_name,
                'last_access': e.last_access.isoformat(),
            }
            for e in entries
        ])

    def list_recent_tenants(self) -> List[RecentTenantEntry]:
        """Snapshot ordered by last access, most recent first."""
        # Stable sort: on equal timestamps the latest write (stored first) wins
        return sorted(self._load_recent(), key=lambda e: e.last_access, reverse=True)

    def upsert_recent_tenant(self, tenant_key: str, display_name: str) -> RecentTenantEntry:
        key = normalize(tenant_key)
        entry = RecentTenantEntry(tenant_key=key, display_name=display_name, last_access=self.clock())
        others = [e for e in self.list_recent_tenants() if e.tenant_key != key]
        self._save_recent(([entry] + others)[:self.max_recent])
        return entry

    def remove_recent_tenant(self, tenant_key: str) -> None:
        key = normalize(tenant_key)
        entries = self._load_recent()
        remaining = [e for e in entries if e.tenant_key != key]
        if len(remaining) != len(entries):
            self._save_recent(remaining)
