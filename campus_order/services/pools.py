"""
Choice pool administration

Pools, their options and the links that attach pools to menu items.
"""

from datetime import datetime
from typing import Any, Dict, List, Sequence
from sqlmodel import Session, select
import uuid
import structlog

from campus_order.core.cache import PUBLIC_MENU_TAG, TaggedCache
from campus_order.core.errors import NotFound
from campus_order.models.choice_pool import ChoicePool, ChoicePoolOption, SetMenuPoolLink
from campus_order.models.menu_item import MenuItem
from campus_order.schemas.menu import (
    OptionCreate, OptionUpdate, PoolCreate, PoolDuplicate, PoolLinkInput, PoolUpdate,
)
from campus_order.services.menu import serialize_pool, sibling_order
from campus_order.services.menu_admin import apply_strict_order, apply_update

logger = structlog.get_logger(__name__)

POOL_NOT_FOUND = "Pool not found"
OPTION_NOT_FOUND = "Option not found"


class ChoicePoolService:
    """CRUD, duplicate and reorder for choice pools and options"""

    def __init__(self, session: Session, cache: TaggedCache):
        self.session = session
        self.cache = cache

    def _commit(self, *rows):
        for row in rows:
            self.session.add(row)
        self.session.commit()
        for row in rows:
            self.session.refresh(row)
        self.cache.invalidate_tag(PUBLIC_MENU_TAG)

    # Pools

    def get_pool(self, pool_id: uuid.UUID) -> ChoicePool:
        pool = self.session.get(ChoicePool, pool_id)
        if pool is None:
            raise NotFound(POOL_NOT_FOUND)
        return pool

    def list_pools(self) -> List[ChoicePool]:
        return list(self.session.exec(select(ChoicePool).order_by(*sibling_order(ChoicePool))).all())

    def list_pools_with_options(self) -> List[Dict[str, Any]]:
        pools = self.list_pools()
        options: Dict[uuid.UUID, List[ChoicePoolOption]] = {}
        for option in self.session.exec(select(ChoicePoolOption).order_by(*sibling_order(ChoicePoolOption))).all():
            options.setdefault(option.pool_id, []).append(option)
        return [serialize_pool(pool, options.get(pool.id, []), admin=True) for pool in pools]

    def create_pool(self, data: PoolCreate) -> ChoicePool:
        pool = ChoicePool(**data.model_dump())
        self._commit(pool)
        logger.info(f"Created choice pool {pool.id}: {pool.name}")
        return pool

    def update_pool(self, pool_id: uuid.UUID, data: PoolUpdate) -> ChoicePool:
        pool = self.get_pool(pool_id)
        apply_update(pool, data, required=("name", "is_active", "display_order"))
        self._commit(pool)
        logger.info(f"Updated choice pool {pool.id}")
        return pool

    def delete_pool(self, pool_id: uuid.UUID):
        """Delete a pool with its options and item links"""
        pool = self.get_pool(pool_id)
        for link in self.session.exec(select(SetMenuPoolLink).where(SetMenuPoolLink.pool_id == pool.id)).all():
            self.session.delete(link)
        for option in self.list_options(pool.id):
            self.session.delete(option)
        self.session.flush()
        self.session.delete(pool)
        self.session.commit()
        self.cache.invalidate_tag(PUBLIC_MENU_TAG)
        logger.info(f"Deleted choice pool {pool_id}")

    def duplicate_pool(self, pool_id: uuid.UUID, overrides: PoolDuplicate) -> ChoicePool:
        """Copy a pool and all of its options into a new pool"""
        source = self.get_pool(pool_id)
        copy = ChoicePool(
            name=overrides.name or f"{source.name} (Copy)",
            name_en=overrides.name_en or (f"{source.name_en} (Copy)" if source.name_en else None),
            name_mm=overrides.name_mm or source.name_mm,
            is_active=source.is_active,
            display_order=source.display_order,
        )
        self.session.add(copy)
        self.session.flush()

        options = self.list_options(source.id)
        for option in options:
            self.session.add(ChoicePoolOption(
                pool_id=copy.id,
                menu_code=option.menu_code,
                name_en=option.name_en,
                name_mm=option.name_mm,
                price=option.price,
                is_available=option.is_available,
                display_order=option.display_order,
            ))
        self._commit(copy)
        logger.info(f"Duplicated choice pool {source.id} into {copy.id} with {len(options)} options")
        return copy

    def reorder_pools(self, ordered_ids: Sequence[uuid.UUID]):
        rows = apply_strict_order(self.list_pools(), ordered_ids, "pools")
        self._commit(*rows)
        logger.info(f"Reordered {len(rows)} choice pools")

    # Options

    def list_options(self, pool_id: uuid.UUID) -> List[ChoicePoolOption]:
        return list(self.session.exec(
            select(ChoicePoolOption)
            .where(ChoicePoolOption.pool_id == pool_id)
            .order_by(*sibling_order(ChoicePoolOption))
        ).all())

    def get_option(self, pool_id: uuid.UUID, option_id: uuid.UUID) -> ChoicePoolOption:
        option = self.session.get(ChoicePoolOption, option_id)
        if option is None or option.pool_id != pool_id:
            raise NotFound(OPTION_NOT_FOUND)
        return option

    def create_option(self, pool_id: uuid.UUID, data: OptionCreate) -> ChoicePoolOption:
        pool = self.get_pool(pool_id)
        option = ChoicePoolOption(pool_id=pool.id, **data.model_dump())
        self._commit(option)
        logger.info(f"Created option {option.id} in pool {pool.id}")
        return option

    def update_option(self, pool_id: uuid.UUID, option_id: uuid.UUID, data: OptionUpdate) -> ChoicePoolOption:
        option = self.get_option(pool_id, option_id)
        apply_update(option, data, required=("name_en", "price", "is_available", "display_order"))
        self._commit(option)
        logger.info(f"Updated option {option.id}")
        return option

    def delete_option(self, pool_id: uuid.UUID, option_id: uuid.UUID):
        option = self.get_option(pool_id, option_id)
        self.session.delete(option)
        self.session.commit()
        self.cache.invalidate_tag(PUBLIC_MENU_TAG)
        logger.info(f"Deleted option {option_id} from pool {pool_id}")

    def reorder_options(self, pool_id: uuid.UUID, ordered_ids: Sequence[uuid.UUID]):
        """Reorder options of one pool; ids from other pools are rejected"""
        self.get_pool(pool_id)
        rows = apply_strict_order(self.list_options(pool_id), ordered_ids, "options")
        self._commit(*rows)
        logger.info(f"Reordered {len(rows)} options in pool {pool_id}")

    # Item links

    def get_pool_links(self, menu_item_id: uuid.UUID) -> List[SetMenuPoolLink]:
        return list(self.session.exec(
            select(SetMenuPoolLink)
            .where(SetMenuPoolLink.menu_item_id == menu_item_id)
            .order_by(*sibling_order(SetMenuPoolLink))
        ).all())

    def sync_pool_links(self, menu_item_id: uuid.UUID, links: Sequence[PoolLinkInput]) -> List[SetMenuPoolLink]:
        """Replace an item's pool links in one transaction"""
        item = self.session.get(MenuItem, menu_item_id)
        if item is None:
            raise NotFound("Menu item not found")
        for link in links:
            self.get_pool(link.pool_id)

        for existing in self.get_pool_links(item.id):
            self.session.delete(existing)
        self.session.flush()

        now = datetime.utcnow()
        created = []
        for position, link in enumerate(links):
            row = SetMenuPoolLink(menu_item_id=item.id, display_order=position, created_at=now, **link.model_dump())
            self.session.add(row)
            created.append(row)
        item.updated_at = now
        self._commit(item, *created)
        logger.info(f"Synced {len(created)} pool links for menu item {item.id}")
        return created


def serialize_link(link: SetMenuPoolLink) -> Dict[str, Any]:
    return {
        "id": str(link.id),
        "menuItemId": str(link.menu_item_id),
        "poolId": str(link.pool_id),
        "isPriceDetermining": link.is_price_determining,
        "usesOptionPrice": link.uses_option_price,
        "flatPrice": link.flat_price,
        "isRequired": link.is_required,
        "minSelect": link.min_select,
        "maxSelect": link.max_select,
        "labelEn": link.label_en,
        "labelMm": link.label_mm,
        "displayOrder": link.display_order,
    }
