"""
Shop status gate

The open/closed switch lives in a single `shop_settings` row. Reads go
through the tagged cache with a short TTL; writes upsert the row and then
invalidate the `shop-status` tag so the next read sees the change.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional
from sqlmodel import Session
import uuid
import structlog

from campus_order.core.cache import SHOP_STATUS_TAG, TaggedCache
from campus_order.core.errors import ShopClosed
from campus_order.models.shop_settings import SHOP_SETTINGS_ID, ShopSettings

logger = structlog.get_logger(__name__)

SHOP_STATUS_CACHE_KEY = "shop-status:default"
DEFAULT_CLOSED_MESSAGE = "Shop is currently closed"


@dataclass(frozen=True)
class ShopStatus:
    is_open: bool
    closed_message_en: Optional[str] = None
    closed_message_mm: Optional[str] = None
    updated_by_admin_id: Optional[uuid.UUID] = None
    updated_at: Optional[datetime] = None

    @property
    def closed_message(self) -> str:
        return self.closed_message_en or DEFAULT_CLOSED_MESSAGE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isOpen": self.is_open,
            "closedMessageEn": self.closed_message_en,
            "closedMessageMm": self.closed_message_mm,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


OPEN_BY_DEFAULT = ShopStatus(is_open=True)


def normalize_message(message: Optional[str]) -> Optional[str]:
    """Trim a message; blank becomes None"""
    if message is None:
        return None
    message = message.strip()
    return message or None


class ShopStatusGate:
    """Reads and writes the shop open/closed switch"""

    def __init__(self, session: Session, cache: TaggedCache, ttl_seconds: int = 60):
        self.session = session
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    def _load(self) -> ShopStatus:
        row = self.session.get(ShopSettings, SHOP_SETTINGS_ID)
        if row is None:
            return OPEN_BY_DEFAULT
        return ShopStatus(
            is_open=row.is_open,
            closed_message_en=row.closed_message_en,
            closed_message_mm=row.closed_message_mm,
            updated_by_admin_id=row.updated_by_admin_id,
            updated_at=row.updated_at,
        )

    def get_status(self) -> ShopStatus:
        """Cached shop status; a missing row means open"""
        return self.cache.get_or_set(
            SHOP_STATUS_CACHE_KEY,
            self._load,
            ttl_seconds=self.ttl_seconds,
            tags=[SHOP_STATUS_TAG],
        )

    def set_status(
        self,
        is_open: bool,
        admin_id: Optional[uuid.UUID],
        closed_message_en: Optional[str] = None,
        closed_message_mm: Optional[str] = None,
    ) -> ShopStatus:
        """Upsert the singleton row and invalidate cached reads"""
        row = self.session.get(ShopSettings, SHOP_SETTINGS_ID)
        if row is None:
            row = ShopSettings(id=SHOP_SETTINGS_ID)

        row.is_open = is_open
        row.closed_message_en = normalize_message(closed_message_en)
        row.closed_message_mm = normalize_message(closed_message_mm)
        row.updated_by_admin_id = admin_id
        row.updated_at = datetime.utcnow()

        self.session.add(row)
        self.session.commit()
        self.cache.invalidate_tag(SHOP_STATUS_TAG)

        logger.info(f"Shop {'opened' if is_open else 'closed'} by admin {admin_id}")
        return self._load()

    def ensure_open(self) -> ShopStatus:
        """Raise ShopClosed with the configured message while closed"""
        status = self.get_status()
        if not status.is_open:
            logger.warning("Rejected operation while shop is closed")
            raise ShopClosed(status.closed_message)
        return status
