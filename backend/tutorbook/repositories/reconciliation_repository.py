# backend/tutorbook/repositories/reconciliation_repository.py
"""Reconciliation records for payments whose seat commit failed."""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.reconciliation import ReconciliationRecord
from .base_repository import BaseRepository


class ReconciliationRepository(BaseRepository[ReconciliationRecord]):
    def __init__(self, db: Session):
        super().__init__(db, ReconciliationRecord)

    def list_unresolved(self, schedule_id: Optional[str] = None) -> List[ReconciliationRecord]:
        try:
            query = self.db.query(ReconciliationRecord).filter(
                ReconciliationRecord.resolved_at.is_(None)
            )
            if schedule_id:
                query = query.filter(ReconciliationRecord.schedule_id == schedule_id)
            return query.order_by(ReconciliationRecord.created_at).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing reconciliation records: {str(e)}")
            raise RepositoryException(f"Failed to list reconciliation records: {str(e)}") from e

    def mark_resolved(self, record_id: str) -> Optional[ReconciliationRecord]:
        record = self.get_by_id(record_id)
        if record is None:
            return None
        record.resolved_at = datetime.now(timezone.utc)
        self.db.flush()
        return record
