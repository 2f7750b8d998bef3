"""
Audit logging for mutating actions.
Writes are best effort: a failed audit insert never fails the request that caused it.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.models.activity import AuditLog
from typing import Any, Dict, Optional, Union
import uuid
import logging

logger = logging.getLogger(__name__)


class AuditLogger:
    """Records (actor, action, resource type, resource id, details) rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(
        self,
        actor_id: uuid.UUID,
        action: str,
        resource_type: str,
        resource_id: Optional[Union[uuid.UUID, str]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Append an audit entry.

        Returns:
            True if the entry was committed, False if it was dropped
        """
        try:
            self.db.add(AuditLog(
                actor_id=actor_id,
                action=action,
                resource_type=resource_type,
                resource_id=str(resource_id) if resource_id is not None else None,
                details=details or {},
            ))
            await self.db.commit()
            return True
        except Exception as e:
            await self.db.rollback()
            logger.warning(f"Failed to write audit entry {action} for {resource_type} {resource_id}: {e}")
            return False
