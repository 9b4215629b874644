"""
Base class for tenant-scoped record editors (products, customers).

Every read and write is filtered by the normalized CNPJ passed in by the
caller; nothing is inferred from the logged-in session.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError

from pdv_web.exceptions import NotFoundError, RemoteStoreError
from pdv_web.utils.tenant_key import normalize

logger = logging.getLogger(__name__)


def generate_local_id(prefix: str = 'web') -> str:
    """Temporary identifier for a record created here, e.g. 'web_1735689600000'."""
    return f"{prefix}_{int(time.time() * 1000)}"


class RecordEditor:
    """
    list / get / save / soft_delete for one tenant-owned model.

    Subclasses set `model`, `search_columns`, `label` and implement
    `prepare(record)`, which turns submitted data into column values.
    """

    model = None
    search_columns = ()
    label = 'registro'
    not_found_message = 'Registro não encontrado'

    def __init__(self, db_session, origin: str = 'web', local_id_prefix: str = 'web'):
        self.db_session = db_session
        self.origin = origin
        self.local_id_prefix = local_id_prefix

    def _scoped(self, tenant_key: str):
        return self.db_session.query(self.model).filter(self.model.cnpj == normalize(tenant_key))

    def list(self, tenant_key: str, active_only: bool = True, search: Optional[str] = None) -> List[Any]:
        """
        Records of the company ordered by name.

        Store failures are logged and produce an empty list.
        """
        try:
            query = self._scoped(tenant_key)
            if active_only:
                query = query.filter(self.model.active.is_(True))

            search = (search or '').strip().lower()
            if search:
                query = query.filter(or_(*[
                    func.lower(column).like(f'%{search}%') for column in self.search_columns
                ]))

            return query.order_by(self.model.name).all()
        except SQLAlchemyError as e:
            self.db_session.rollback()
            logger.error(f"[{self.label.upper()}] Listing failed for {tenant_key}: {e}")
            return []

    def get(self, tenant_key: str, record_id: Any) -> Optional[Any]:
        """Record by remote id within the company, None when missing."""
        try:
            return self._scoped(tenant_key).filter(self.model.id == record_id).first()
        except SQLAlchemyError as e:
            self.db_session.rollback()
            logger.error(f"[{self.label.upper()}] Load of {record_id} failed: {e}")
            raise RemoteStoreError() from e

    def prepare(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Normalize submitted data into column values."""
        raise NotImplementedError

    def save(self, tenant_key: str, record: Dict[str, Any], is_new: bool) -> Any:
        """
        Insert a new record for the company or update an existing one by id.

        New records get cnpj, a temporary local_id and the origin tag; updates
        touch only the prepared fields of the record with record['id'].

        Raises:
            NotFoundError: update of an id that is not in this company
            RemoteStoreError: the store failed; the transaction is rolled back
        """
        tenant_key = normalize(tenant_key)
        values = self.prepare(record)
        values['updated_at'] = datetime.now(timezone.utc)

        try:
            if is_new:
                instance = self.model(
                    cnpj=tenant_key,
                    local_id=generate_local_id(self.local_id_prefix),
                    origin=self.origin,
                    **values
                )
                self.db_session.add(instance)
            else:
                instance = self._scoped(tenant_key).filter(self.model.id == record.get('id')).first()
                if instance is None:
                    raise NotFoundError(self.not_found_message)
                for key, value in values.items():
                    setattr(instance, key, value)

            self.db_session.commit()
        except SQLAlchemyError as e:
            self.db_session.rollback()
            logger.error(f"[{self.label.upper()}] Save failed for {tenant_key}: {e}", exc_info=True)
            raise RemoteStoreError(f'Erro ao salvar {self.label}') from e

        logger.info(f"[{self.label.upper()}] Saved {instance!r}")
        return instance

    def soft_delete(self, record: Any) -> Any:
        """Mark the record inactive; it stays in the store."""
        try:
            record.active = False
            record.updated_at = datetime.now(timezone.utc)
            self.db_session.commit()
        except SQLAlchemyError as e:
            self.db_session.rollback()
            logger.error(f"[{self.label.upper()}] Deactivation failed for {record!r}: {e}")
            raise RemoteStoreError(f'Erro ao excluir {self.label}') from e

        logger.info(f"[{self.label.upper()}] Deactivated {record!r}")
        return record
