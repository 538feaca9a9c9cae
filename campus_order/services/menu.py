"""
Menu hierarchy assembler

Builds the category -> item -> pool link -> option tree. The public view is
served to customers and cached under the `public-menu` tag; the admin view
includes inactive and unpublished rows for editing.

Siblings at every level sort by (display_order, created_at, id) so the tree
shape never depends on database row order.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from sqlmodel import Session, select
import uuid
import structlog

from campus_order.core.cache import PUBLIC_MENU_TAG, TaggedCache
from campus_order.core.errors import NotFound
from campus_order.models.choice_pool import ChoicePool, ChoicePoolOption, SetMenuPoolLink
from campus_order.models.menu_category import MenuCategory
from campus_order.models.menu_item import MenuItem, MenuItemStatus
from campus_order.models.recommended_item import RecommendedMenuItem

logger = structlog.get_logger(__name__)

PUBLIC_MENU_KEY = "public-menu:tree"
MENU_ITEM_NOT_FOUND = "Menu item not found."


def sibling_order(model):
    """ORDER BY clause shared by every sibling list"""
    return (model.display_order, model.created_at, model.id)


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_category(category: MenuCategory, admin: bool = False) -> Dict[str, Any]:
    data = {
        "id": str(category.id),
        "nameEn": category.name_en,
        "nameMm": category.name_mm,
        "displayOrder": category.display_order,
        "isActive": category.is_active,
    }
    if admin:
        data["createdAt"] = _iso(category.created_at)
        data["updatedAt"] = _iso(category.updated_at)
    return data


def serialize_option(option: ChoicePoolOption, admin: bool = False) -> Dict[str, Any]:
    data = {
        "id": str(option.id),
        "menuCode": option.menu_code,
        "nameEn": option.name_en,
        "nameMm": option.name_mm,
        "price": option.price,
        "isAvailable": option.is_available,
        "displayOrder": option.display_order,
    }
    if admin:
        data["poolId"] = str(option.pool_id)
    return data


def serialize_pool(pool: ChoicePool, options: List[ChoicePoolOption] = None, admin: bool = False) -> Dict[str, Any]:
    data = {
        "id": str(pool.id),
        "name": pool.name,
        "nameEn": pool.name_en,
        "nameMm": pool.name_mm,
        "isActive": pool.is_active,
        "displayOrder": pool.display_order,
    }
    if options is not None:
        data["options"] = [serialize_option(option, admin) for option in options]
    if admin:
        data["createdAt"] = _iso(pool.created_at)
    return data


def serialize_pool_link(
    link: SetMenuPoolLink,
    pool: ChoicePool,
    options: List[ChoicePoolOption],
    admin: bool = False
) -> Dict[str, Any]:
    data = {
        "id": str(link.id),
        "poolId": str(link.pool_id),
        "poolName": pool.name_en or pool.name,
        "poolNameMm": pool.name_mm,
        "labelEn": link.label_en,
        "labelMm": link.label_mm,
        "isRequired": link.is_required,
        "minSelect": link.min_select,
        "maxSelect": link.max_select,
        "isPriceDetermining": link.is_price_determining,
        "usesOptionPrice": link.uses_option_price,
        "flatPrice": link.flat_price,
        "displayOrder": link.display_order,
        "options": [serialize_option(option, admin) for option in options],
    }
    if admin:
        data["poolIsActive"] = pool.is_active
    return data


def serialize_item(item: MenuItem, pool_links: List[Dict[str, Any]] = None, admin: bool = False) -> Dict[str, Any]:
    data = {
        "id": str(item.id),
        "categoryId": str(item.category_id),
        "menuCode": item.menu_code,
        "nameEn": item.name_en,
        "nameMm": item.name_mm,
        "descriptionEn": item.description_en,
        "descriptionMm": item.description_mm,
        "imageUrl": item.image_url,
        "price": item.price,
        "isAvailable": item.is_available,
        "isSetMenu": item.is_set_menu,
        "allowUserNotes": item.allow_user_notes,
        "displayOrder": item.display_order,
    }
    if pool_links is not None:
        data["poolLinks"] = pool_links
    if admin:
        data["status"] = item.status
        data["createdAt"] = _iso(item.created_at)
        data["updatedAt"] = _iso(item.updated_at)
    return data


@dataclass
class MenuRows:
    """Rows loaded for one tree build, grouped by parent id"""
    categories: List[MenuCategory] = field(default_factory=list)
    items_by_category: Dict[uuid.UUID, List[MenuItem]] = field(default_factory=dict)
    links_by_item: Dict[uuid.UUID, List[SetMenuPoolLink]] = field(default_factory=dict)
    pools: Dict[uuid.UUID, ChoicePool] = field(default_factory=dict)
    options_by_pool: Dict[uuid.UUID, List[ChoicePoolOption]] = field(default_factory=dict)


class MenuHierarchyAssembler:
    """Builds public and admin menu trees"""

    def __init__(self, session: Session, cache: Optional[TaggedCache] = None, ttl_seconds: int = 3600):
        self.session = session
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    def _load_rows(self, public: bool, item_ids: Optional[List[uuid.UUID]] = None) -> MenuRows:
        rows = MenuRows()

        category_query = select(MenuCategory).order_by(*sibling_order(MenuCategory))
        if public:
            category_query = category_query.where(MenuCategory.is_active == True)  # noqa: E712
        rows.categories = list(self.session.exec(category_query).all())
        category_ids = [category.id for category in rows.categories]
        if not category_ids:
            return rows

        item_query = (
            select(MenuItem)
            .where(MenuItem.category_id.in_(category_ids))
            .order_by(*sibling_order(MenuItem))
        )
        if public:
            item_query = item_query.where(MenuItem.status == MenuItemStatus.PUBLISHED.value)
        if item_ids is not None:
            item_query = item_query.where(MenuItem.id.in_(item_ids))
        items = self.session.exec(item_query).all()
        for item in items:
            rows.items_by_category.setdefault(item.category_id, []).append(item)

        loaded_item_ids = [item.id for item in items]
        if not loaded_item_ids:
            return rows

        links = self.session.exec(
            select(SetMenuPoolLink)
            .where(SetMenuPoolLink.menu_item_id.in_(loaded_item_ids))
            .order_by(*sibling_order(SetMenuPoolLink))
        ).all()
        pool_ids = {link.pool_id for link in links}
        if pool_ids:
            pool_query = select(ChoicePool).where(ChoicePool.id.in_(pool_ids))
            if public:
                pool_query = pool_query.where(ChoicePool.is_active == True)  # noqa: E712
            rows.pools = {pool.id: pool for pool in self.session.exec(pool_query).all()}

        if rows.pools:
            option_query = (
                select(ChoicePoolOption)
                .where(ChoicePoolOption.pool_id.in_(list(rows.pools.keys())))
                .order_by(*sibling_order(ChoicePoolOption))
            )
            if public:
                option_query = option_query.where(ChoicePoolOption.is_available == True)  # noqa: E712
            for option in self.session.exec(option_query).all():
                rows.options_by_pool.setdefault(option.pool_id, []).append(option)

        for link in links:
            if link.pool_id in rows.pools:
                rows.links_by_item.setdefault(link.menu_item_id, []).append(link)
        return rows

    def _build_item(self, rows: MenuRows, item: MenuItem, admin: bool) -> Dict[str, Any]:
        pool_links = [
            serialize_pool_link(
                link,
                rows.pools[link.pool_id],
                rows.options_by_pool.get(link.pool_id, []),
                admin,
            )
            for link in rows.links_by_item.get(item.id, [])
        ]
        return serialize_item(item, pool_links, admin)

    def _build_tree(self, rows: MenuRows, admin: bool) -> List[Dict[str, Any]]:
        tree = []
        for category in rows.categories:
            node = serialize_category(category, admin)
            node["items"] = [
                self._build_item(rows, item, admin)
                for item in rows.items_by_category.get(category.id, [])
            ]
            tree.append(node)
        return tree

    def build_public_menu(self) -> List[Dict[str, Any]]:
        """Active categories, published items, active pools and available options"""
        return self._build_tree(self._load_rows(public=True), admin=False)

    def build_admin_menu(self) -> List[Dict[str, Any]]:
        """Every row, with admin-only fields"""
        return self._build_tree(self._load_rows(public=False), admin=True)

    def build_public_item(self, item_id: uuid.UUID) -> Dict[str, Any]:
        rows = self._load_rows(public=True, item_ids=[item_id])
        for category in rows.categories:
            for item in rows.items_by_category.get(category.id, []):
                detail = self._build_item(rows, item, admin=False)
                detail["category"] = serialize_category(category)
                return detail
        raise NotFound(MENU_ITEM_NOT_FOUND)

    def build_recommended(self, public: bool = True) -> List[Dict[str, Any]]:
        """Recommended items; the public list drops unpublished items and inactive categories"""
        entries = self.session.exec(
            select(RecommendedMenuItem).order_by(*sibling_order(RecommendedMenuItem))
        ).all()
        if not entries:
            return []

        rows = self._load_rows(public=public, item_ids=[entry.menu_item_id for entry in entries])
        items = {
            item.id: item
            for category_items in rows.items_by_category.values()
            for item in category_items
        }
        recommended = []
        for entry in entries:
            item = items.get(entry.menu_item_id)
            if item is None:
                continue
            recommended.append({
                "id": str(entry.id),
                "menuItemId": str(entry.menu_item_id),
                "categoryId": str(entry.menu_category_id),
                "badgeLabel": entry.badge_label,
                "displayOrder": entry.display_order,
                "item": self._build_item(rows, item, admin=not public),
            })
        return recommended

    def get_public_menu(self) -> Dict[str, Any]:
        """Cached `{menu, recommended}` payload for the storefront"""
        def load():
            logger.info("Building public menu")
            return {
                "menu": self.build_public_menu(),
                "recommended": self.build_recommended(public=True),
            }

        if self.cache is None:
            return load()
        return self.cache.get_or_set(PUBLIC_MENU_KEY, load, self.ttl_seconds, tags=[PUBLIC_MENU_TAG])

    def get_public_item(self, item_id: uuid.UUID) -> Dict[str, Any]:
        """Cached public detail for one menu item"""
        if self.cache is None:
            return self.build_public_item(item_id)
        return self.cache.get_or_set(
            f"public-menu:item:{item_id}",
            lambda: self.build_public_item(item_id),
            self.ttl_seconds,
            tags=[PUBLIC_MENU_TAG],
        )
