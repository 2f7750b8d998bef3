"""
Activity records: audit trail, analytics events and favorites.
These tables feed the audit log and the advisory analytics.
"""

from sqlalchemy import String, JSON, Uuid, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from marketplace.database import Base
import enum
import uuid
from typing import Any, Dict, Optional


class AnalyticsEventType(str, enum.Enum):
    PROPERTY_VIEWED = "property_viewed"
    PROPERTY_UPDATED = "property_updated"
    PROPERTY_ARCHIVED = "property_archived"
    SEARCH_PERFORMED = "search_performed"


class AuditLog(Base):
    """Append-only record of a mutating action."""

    __tablename__ = "audit_logs"

    actor_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    resource_type: Mapped[str] = mapped_column(String(50), nullable=False)
    resource_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    details: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "actor_id": str(self.actor_id),
            "action": self.action,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "details": self.details,
            "created_at": self.created_at.isoformat(),
        }


class AnalyticsEvent(Base):
    """User interaction recorded for analytics; removed with its property on hard delete."""

    __tablename__ = "analytics_events"

    event_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    property_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=True,
        index=True
    )

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    details: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)


class PropertyFavorite(Base):
    """A user's saved listing."""

    __tablename__ = "property_favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "property_id", name="uq_property_favorites_user_property"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )


analytics_events_user_type_index = Index(
    "idx_analytics_events_user_type",
    AnalyticsEvent.user_id,
    AnalyticsEvent.event_type,
    AnalyticsEvent.created_at
)
