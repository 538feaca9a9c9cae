"""
Admin menu mutations

Every successful mutation invalidates the `public-menu` cache tag so the
storefront rebuilds its tree on the next read.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
from pydantic import BaseModel
from sqlmodel import Session, SQLModel, select
import uuid
import structlog

from campus_order.core.cache import PUBLIC_MENU_TAG, TaggedCache
from campus_order.core.errors import InvalidPayload, NotFound
from campus_order.models.cart import CartItem, CartItemChoice
from campus_order.models.choice_pool import SetMenuPoolLink
from campus_order.models.menu_category import MenuCategory
from campus_order.models.menu_item import MenuItem
from campus_order.models.recommended_item import RecommendedMenuItem
from campus_order.schemas.menu import (
    CategoryCreate, CategoryUpdate, MenuItemCreate, MenuItemUpdate, RecommendedCreate,
)
from campus_order.services.menu import MenuHierarchyAssembler, sibling_order

logger = structlog.get_logger(__name__)

CATEGORY_NOT_FOUND = "Category not found"
MENU_ITEM_NOT_FOUND = "Menu item not found"


def apply_strict_order(rows: Sequence[SQLModel], ordered_ids: Sequence[uuid.UUID], scope: str) -> List[SQLModel]:
    """Set display_order = position for every row.

    The submitted ids must be exactly the ids of rows: no extras, no
    omissions and no duplicates. Nothing is changed when they differ.
    """
    if len(set(ordered_ids)) != len(ordered_ids):
        raise InvalidPayload(f"Duplicate ids in {scope} order")
    by_id = {row.id: row for row in rows}
    if set(ordered_ids) != set(by_id):
        raise InvalidPayload(f"Submitted ids do not match the {scope} being reordered")

    now = datetime.utcnow()
    reordered = []
    for position, row_id in enumerate(ordered_ids):
        row = by_id[row_id]
        row.display_order = position
        if hasattr(row, "updated_at"):
            row.updated_at = now
        reordered.append(row)
    return reordered


def apply_update(model: SQLModel, data: BaseModel, required: Sequence[str] = ()):
    """Copy the fields that were sent; required columns cannot be nulled"""
    for key, value in data.model_dump(exclude_unset=True).items():
        if value is None and key in required:
            raise InvalidPayload(f"{key} cannot be empty")
        setattr(model, key, value)
    if hasattr(model, "updated_at"):
        model.updated_at = datetime.utcnow()


class MenuAdminService:
    """Category, item and recommendation management"""

    def __init__(self, session: Session, cache: TaggedCache):
        self.session = session
        self.cache = cache

    def invalidate_public_menu(self):
        self.cache.invalidate_tag(PUBLIC_MENU_TAG)

    def _commit(self, *rows: SQLModel):
        for row in rows:
            self.session.add(row)
        self.session.commit()
        for row in rows:
            self.session.refresh(row)
        self.invalidate_public_menu()

    def get_tree(self) -> List[Dict[str, Any]]:
        return MenuHierarchyAssembler(self.session).build_admin_menu()

    # Categories

    def get_category(self, category_id: uuid.UUID) -> MenuCategory:
        category = self.session.get(MenuCategory, category_id)
        if category is None:
            raise NotFound(CATEGORY_NOT_FOUND)
        return category

    def list_categories(self) -> List[MenuCategory]:
        return list(self.session.exec(select(MenuCategory).order_by(*sibling_order(MenuCategory))).all())

    def create_category(self, data: CategoryCreate) -> MenuCategory:
        category = MenuCategory(**data.model_dump())
        self._commit(category)
        logger.info(f"Created menu category {category.id}: {category.name_en}")
        return category

    def update_category(self, category_id: uuid.UUID, data: CategoryUpdate) -> MenuCategory:
        category = self.get_category(category_id)
        apply_update(category, data, required=("name_en", "display_order", "is_active"))
        self._commit(category)
        logger.info(f"Updated menu category {category.id}")
        return category

    def delete_category(self, category_id: uuid.UUID):
        """Delete a category together with its items"""
        category = self.get_category(category_id)
        items = self.session.exec(select(MenuItem).where(MenuItem.category_id == category.id)).all()
        for item in items:
            self._delete_item_rows(item)
        for entry in self.session.exec(
            select(RecommendedMenuItem).where(RecommendedMenuItem.menu_category_id == category.id)
        ).all():
            self.session.delete(entry)
        self.session.flush()
        self.session.delete(category)
        self.session.commit()
        self.invalidate_public_menu()
        logger.info(f"Deleted menu category {category_id} and {len(items)} items")

    def reorder_categories(self, ordered_ids: Sequence[uuid.UUID]):
        rows = apply_strict_order(self.list_categories(), ordered_ids, "categories")
        self._commit(*rows)
        logger.info(f"Reordered {len(rows)} menu categories")

    # Items

    def get_item(self, item_id: uuid.UUID) -> MenuItem:
        item = self.session.get(MenuItem, item_id)
        if item is None:
            raise NotFound(MENU_ITEM_NOT_FOUND)
        return item

    def list_items(self, category_id: Optional[uuid.UUID] = None) -> List[MenuItem]:
        query = select(MenuItem).order_by(*sibling_order(MenuItem))
        if category_id is not None:
            query = query.where(MenuItem.category_id == category_id)
        return list(self.session.exec(query).all())

    def create_item(self, data: MenuItemCreate) -> MenuItem:
        self.get_category(data.category_id)
        item = MenuItem(**data.model_dump())
        self._commit(item)
        logger.info(f"Created menu item {item.id}: {item.name_en}")
        return item

    def update_item(self, item_id: uuid.UUID, data: MenuItemUpdate) -> MenuItem:
        item = self.get_item(item_id)
        if data.category_id is not None:
            self.get_category(data.category_id)
        apply_update(
            item,
            data,
            required=("category_id", "name_en", "price", "status", "is_available",
                      "is_set_menu", "allow_user_notes", "display_order"),
        )
        self._commit(item)
        logger.info(f"Updated menu item {item.id}")
        return item

    def _delete_item_rows(self, item: MenuItem):
        for link in self.session.exec(select(SetMenuPoolLink).where(SetMenuPoolLink.menu_item_id == item.id)).all():
            self.session.delete(link)
        for entry in self.session.exec(
            select(RecommendedMenuItem).where(RecommendedMenuItem.menu_item_id == item.id)
        ).all():
            self.session.delete(entry)
        lines = self.session.exec(select(CartItem).where(CartItem.menu_item_id == item.id)).all()
        for line in lines:
            for choice in self.session.exec(select(CartItemChoice).where(CartItemChoice.cart_item_id == line.id)).all():
                self.session.delete(choice)
            self.session.delete(line)
        self.session.flush()
        self.session.delete(item)

    def delete_item(self, item_id: uuid.UUID):
        item = self.get_item(item_id)
        self._delete_item_rows(item)
        self.session.commit()
        self.invalidate_public_menu()
        logger.info(f"Deleted menu item {item_id}")

    def set_item_availability(self, item_id: uuid.UUID, is_available: bool) -> MenuItem:
        """Stock toggle; raises NotFound without touching the database"""
        item = self.get_item(item_id)
        item.is_available = is_available
        item.updated_at = datetime.utcnow()
        self._commit(item)
        logger.info(f"Menu item {item.id} availability set to {is_available}")
        return item

    def reorder_items(self, category_id: uuid.UUID, ordered_ids: Sequence[uuid.UUID]):
        self.get_category(category_id)
        rows = apply_strict_order(self.list_items(category_id), ordered_ids, "items")
        self._commit(*rows)
        logger.info(f"Reordered {len(rows)} items in category {category_id}")

    # Recommendations

    def list_recommended(self) -> List[Dict[str, Any]]:
        return MenuHierarchyAssembler(self.session).build_recommended(public=False)

    def add_recommended(self, data: RecommendedCreate) -> RecommendedMenuItem:
        item = self.get_item(data.menu_item_id)
        existing = self.session.exec(
            select(RecommendedMenuItem).where(RecommendedMenuItem.menu_item_id == item.id)
        ).first()
        if existing is not None:
            raise InvalidPayload("Menu item is already recommended")

        count = len(self.session.exec(select(RecommendedMenuItem.id)).all())
        entry = RecommendedMenuItem(
            menu_item_id=item.id,
            menu_category_id=item.category_id,
            badge_label=data.badge_label,
            display_order=count,
        )
        self._commit(entry)
        logger.info(f"Recommended menu item {item.id}")
        return entry

    def remove_recommended(self, entry_id: uuid.UUID):
        entry = self.session.get(RecommendedMenuItem, entry_id)
        if entry is None:
            raise NotFound("Recommended item not found")
        self.session.delete(entry)
        self.session.commit()
        self.invalidate_public_menu()

    def reorder_recommended(self, ordered_ids: Sequence[uuid.UUID]):
        entries = self.session.exec(select(RecommendedMenuItem)).all()
        rows = apply_strict_order(entries, ordered_ids, "recommended items")
        self._commit(*rows)


def serialize_availability(item: MenuItem) -> Dict[str, Any]:
    """Trimmed projection returned by the stock toggle"""
    return {
        "id": str(item.id),
        "nameEn": item.name_en,
        "nameMm": item.name_mm,
        "isAvailable": item.is_available,
        "updatedAt": item.updated_at.isoformat() if item.updated_at else None,
    }
