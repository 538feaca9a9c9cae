"""
Cart aggregation

Every add first checks the quantity bounds and the shop gate, then resolves
the menu item and its selections into a priced LinePlan. Plans are applied
to the user's active cart in one transaction: a batch either lands
completely or not at all.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
from sqlmodel import Session, select
import hashlib
import json
import uuid
import structlog

from campus_order.core.errors import AppError, InvalidPayload, InvalidQuantity, NotFound
from campus_order.models.cart import Cart, CartItem, CartItemChoice, CartStatus
from campus_order.models.choice_pool import ChoicePool, ChoicePoolOption, SetMenuPoolLink
from campus_order.models.menu_category import MenuCategory
from campus_order.models.menu_item import MenuItem
from campus_order.services.menu import sibling_order
from campus_order.services.shop import ShopStatusGate

logger = structlog.get_logger(__name__)

SELECTION_ROLE_BASE = "base"
SELECTION_ROLE_ADDON = "addon"


@dataclass(frozen=True)
class SelectionRef:
    pool_link_id: uuid.UUID
    option_id: uuid.UUID


@dataclass(frozen=True)
class PricedSelection:
    link: SetMenuPoolLink
    pool: ChoicePool
    option: ChoicePoolOption
    role: str
    extra_price: int


@dataclass
class LinePlan:
    item: MenuItem
    quantity: int
    note: Optional[str]
    base_price: int
    addons_total: int
    hash_key: str
    selections: List[PricedSelection] = field(default_factory=list)

    @property
    def unit_price(self) -> int:
        return self.base_price + self.addons_total


def build_line_hash(menu_item_id: uuid.UUID, selections: Iterable[SelectionRef], note: Optional[str]) -> str:
    """Identity of a cart line configuration"""
    payload = {
        "menuItemId": str(menu_item_id),
        "selections": sorted(f"{ref.pool_link_id}:{ref.option_id}" for ref in selections),
        "note": note or "",
    }
    return hashlib.sha256(json.dumps(payload, sort_keys=True).encode("utf-8")).hexdigest()


def price_selection(link: SetMenuPoolLink, option: ChoicePoolOption) -> Tuple[str, int]:
    """Return (role, price) for one chosen option"""
    if link.is_price_determining:
        return SELECTION_ROLE_BASE, option.price
    if not link.uses_option_price and link.flat_price is not None:
        return SELECTION_ROLE_ADDON, link.flat_price
    return SELECTION_ROLE_ADDON, option.price


def _as_refs(selections: Optional[Sequence[Any]]) -> List[SelectionRef]:
    refs = []
    for selection in selections or []:
        if isinstance(selection, SelectionRef):
            refs.append(selection)
        else:
            refs.append(SelectionRef(pool_link_id=selection.pool_link_id, option_id=selection.option_id))
    return refs


class CartService:
    """Operations on a user's active cart"""

    def __init__(self, session: Session, shop_gate: ShopStatusGate, max_quantity_per_line: int = 20):
        self.session = session
        self.shop_gate = shop_gate
        self.max_quantity_per_line = max_quantity_per_line

    # Lookups

    def get_active_cart(self, user_id: uuid.UUID) -> Optional[Cart]:
        return self.session.exec(
            select(Cart).where(Cart.user_id == user_id, Cart.status == CartStatus.ACTIVE.value)
        ).first()

    def _get_or_create_cart(self, user_id: uuid.UUID) -> Cart:
        cart = self.get_active_cart(user_id)
        if cart is None:
            cart = Cart(user_id=user_id)
            self.session.add(cart)
            self.session.flush()
            logger.info(f"Created cart {cart.id} for user {user_id}")
        return cart

    def get_lines(self, cart_id: uuid.UUID) -> List[CartItem]:
        return list(self.session.exec(
            select(CartItem)
            .where(CartItem.cart_id == cart_id)
            .order_by(CartItem.created_at, CartItem.id)
        ).all())

    def get_line_choices(self, line_ids: List[uuid.UUID]) -> Dict[uuid.UUID, List[CartItemChoice]]:
        if not line_ids:
            return {}
        choices: Dict[uuid.UUID, List[CartItemChoice]] = {}
        rows = self.session.exec(
            select(CartItemChoice)
            .where(CartItemChoice.cart_item_id.in_(line_ids))
            .order_by(CartItemChoice.display_order)
        ).all()
        for choice in rows:
            choices.setdefault(choice.cart_item_id, []).append(choice)
        return choices

    def _get_owned_line(self, user_id: uuid.UUID, line_id: uuid.UUID) -> Tuple[Cart, CartItem]:
        cart = self.get_active_cart(user_id)
        line = self.session.get(CartItem, line_id) if cart else None
        if cart is None or line is None or line.cart_id != cart.id:
            raise NotFound("Cart item not found")
        return cart, line

    # Validation and pricing

    def _check_quantity(self, quantity: int):
        if not isinstance(quantity, int) or isinstance(quantity, bool):
            raise InvalidQuantity("Quantity must be a whole number")
        if quantity < 1 or quantity > self.max_quantity_per_line:
            raise InvalidQuantity(f"Quantity must be between 1 and {self.max_quantity_per_line}")

    def _load_orderable_item(self, menu_item_id: uuid.UUID) -> MenuItem:
        item = self.session.get(MenuItem, menu_item_id)
        if item is None or not item.is_published:
            raise NotFound("Menu item not found")
        category = self.session.get(MenuCategory, item.category_id)
        if category is None or not category.is_active:
            raise NotFound("Menu item not found")
        if not item.is_available:
            raise InvalidPayload(f"{item.name_en} is currently unavailable")
        return item

    def _resolve_selections(self, item: MenuItem, refs: List[SelectionRef]) -> List[PricedSelection]:
        links = self.session.exec(
            select(SetMenuPoolLink)
            .where(SetMenuPoolLink.menu_item_id == item.id)
            .order_by(*sibling_order(SetMenuPoolLink))
        ).all()
        pools = {}
        if links:
            pools = {
                pool.id: pool
                for pool in self.session.exec(
                    select(ChoicePool).where(ChoicePool.id.in_([link.pool_id for link in links]))
                ).all()
                if pool.is_active
            }
        active_links = {link.id: link for link in links if link.pool_id in pools}

        priced: List[PricedSelection] = []
        counts: Dict[uuid.UUID, int] = {}
        seen = set()
        for ref in refs:
            if ref in seen:
                raise InvalidPayload("Each option can only be selected once")
            seen.add(ref)

            link = active_links.get(ref.pool_link_id)
            if link is None:
                raise NotFound("Choice group not found for this item")
            option = self.session.get(ChoicePoolOption, ref.option_id)
            if option is None or option.pool_id != link.pool_id:
                raise NotFound("Option not found in this choice group")
            if not option.is_available:
                raise InvalidPayload(f"{option.name_en} is currently unavailable")

            role, price = price_selection(link, option)
            priced.append(PricedSelection(link=link, pool=pools[link.pool_id], option=option, role=role, extra_price=price))
            counts[link.id] = counts.get(link.id, 0) + 1

        for link in active_links.values():
            label = link.label_en or pools[link.pool_id].name_en or pools[link.pool_id].name
            count = counts.get(link.id, 0)
            if count == 0:
                if link.is_required:
                    raise InvalidPayload(f"Please choose an option for {label}")
                continue
            if count < link.min_select:
                raise InvalidPayload(f"Please choose at least {link.min_select} options for {label}")
            if count > link.max_select:
                raise InvalidPayload(f"You can choose at most {link.max_select} options for {label}")

        return priced

    def plan_line(
        self,
        menu_item_id: uuid.UUID,
        quantity: int,
        selections: Optional[Sequence[Any]] = None,
        note: Optional[str] = None,
        require_set_menu: bool = False,
    ) -> LinePlan:
        """Validate one line and compute its price"""
        self._check_quantity(quantity)
        item = self._load_orderable_item(menu_item_id)
        if require_set_menu and not item.is_set_menu:
            raise InvalidPayload("Menu item is not a set menu")
        if note and not item.allow_user_notes:
            raise InvalidPayload("Notes are not allowed for this item")

        refs = _as_refs(selections)
        priced = self._resolve_selections(item, refs)

        base_choices = [selection for selection in priced if selection.role == SELECTION_ROLE_BASE]
        if len(base_choices) > 1:
            raise InvalidPayload("Only one option can set the base price")
        base_price = base_choices[0].extra_price if base_choices else item.price
        addons_total = sum(selection.extra_price for selection in priced if selection.role == SELECTION_ROLE_ADDON)

        return LinePlan(
            item=item,
            quantity=quantity,
            note=note,
            base_price=base_price,
            addons_total=addons_total,
            hash_key=build_line_hash(item.id, refs, note),
            selections=priced,
        )

    # Mutations

    def _apply_plans(self, user_id: uuid.UUID, plans: List[LinePlan]) -> Cart:
        try:
            cart = self._get_or_create_cart(user_id)
            lines = {line.hash_key: line for line in self.get_lines(cart.id)}
            now = datetime.utcnow()

            for plan in plans:
                line = lines.get(plan.hash_key)
                new_quantity = plan.quantity + (line.quantity if line else 0)
                if new_quantity > self.max_quantity_per_line:
                    raise InvalidQuantity(
                        f"You can only add up to {self.max_quantity_per_line} of this configuration."
                    )

                if line is None:
                    line = CartItem(
                        cart_id=cart.id,
                        menu_item_id=plan.item.id,
                        menu_code=plan.item.menu_code,
                        menu_item_name=plan.item.name_en,
                        menu_item_name_mm=plan.item.name_mm,
                        note=plan.note,
                        hash_key=plan.hash_key,
                    )
                    self.session.add(line)
                    self.session.flush()
                    for position, selection in enumerate(plan.selections):
                        self.session.add(CartItemChoice(
                            cart_item_id=line.id,
                            pool_link_id=selection.link.id,
                            option_id=selection.option.id,
                            group_name=selection.link.label_en or selection.pool.name_en or selection.pool.name,
                            group_name_mm=selection.link.label_mm or selection.pool.name_mm,
                            option_name=selection.option.name_en,
                            option_name_mm=selection.option.name_mm,
                            menu_code=selection.option.menu_code,
                            extra_price=selection.extra_price,
                            selection_role=selection.role,
                            display_order=position,
                        ))
                    lines[plan.hash_key] = line
                else:
                    line.updated_at = now

                line.base_price = plan.base_price
                line.addons_total = plan.addons_total
                line.quantity = new_quantity
                line.total_price = plan.unit_price * new_quantity
                self.session.add(line)

            cart.subtotal = sum(line.total_price for line in lines.values())
            cart.updated_at = now
            self.session.add(cart)
            self.session.commit()
        except AppError:
            self.session.rollback()
            raise

        self.session.refresh(cart)
        return cart

    def add_item(
        self,
        user_id: uuid.UUID,
        menu_item_id: uuid.UUID,
        quantity: int,
        selections: Optional[Sequence[Any]] = None,
        note: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Add one configured item; identical configurations merge"""
        self._check_quantity(quantity)
        self.shop_gate.ensure_open()
        plan = self.plan_line(menu_item_id, quantity, selections, note)
        cart = self._apply_plans(user_id, [plan])
        logger.info(f"User {user_id} added {quantity} x {plan.item.name_en} to cart {cart.id}")
        return self.summarize(cart)

    def add_items(self, user_id: uuid.UUID, items: Sequence[Tuple[uuid.UUID, int]]) -> Dict[str, Any]:
        """Bulk add; one invalid entry rejects the whole batch"""
        if not items:
            raise InvalidPayload("At least one item is required")
        for _, quantity in items:
            self._check_quantity(quantity)
        self.shop_gate.ensure_open()

        plans = [self.plan_line(menu_item_id, quantity) for menu_item_id, quantity in items]
        cart = self._apply_plans(user_id, plans)
        logger.info(f"User {user_id} bulk added {len(plans)} items to cart {cart.id}")
        return self.summarize(cart)

    def add_set_menu(
        self,
        user_id: uuid.UUID,
        menu_item_id: uuid.UUID,
        quantity: int,
        selections: Sequence[Any],
        note: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Add a set menu built from pool selections"""
        self._check_quantity(quantity)
        self.shop_gate.ensure_open()
        if not selections:
            raise InvalidPayload("At least one selection is required")
        plan = self.plan_line(menu_item_id, quantity, selections, note, require_set_menu=True)
        cart = self._apply_plans(user_id, [plan])
        logger.info(f"User {user_id} added set menu {plan.item.name_en} to cart {cart.id}")
        return self.summarize(cart)

    def update_quantity(self, user_id: uuid.UUID, line_id: uuid.UUID, quantity: int) -> Dict[str, Any]:
        self._check_quantity(quantity)
        self.shop_gate.ensure_open()
        cart, line = self._get_owned_line(user_id, line_id)

        line.quantity = quantity
        line.total_price = line.unit_price * quantity
        line.updated_at = datetime.utcnow()
        self.session.add(line)
        self._recalculate(cart)
        return self.summarize(cart)

    def remove_item(self, user_id: uuid.UUID, line_id: uuid.UUID) -> Dict[str, Any]:
        cart, line = self._get_owned_line(user_id, line_id)
        for choice in self.get_line_choices([line.id]).get(line.id, []):
            self.session.delete(choice)
        self.session.delete(line)
        self.session.flush()
        self._recalculate(cart)
        logger.info(f"User {user_id} removed line {line_id} from cart {cart.id}")
        return self.summarize(cart)

    def _recalculate(self, cart: Cart):
        self.session.flush()
        cart.subtotal = sum(line.total_price for line in self.get_lines(cart.id))
        cart.updated_at = datetime.utcnow()
        self.session.add(cart)
        self.session.commit()
        self.session.refresh(cart)

    # Summaries

    def summarize(self, cart: Optional[Cart]) -> Dict[str, Any]:
        """Reduce the cart to {lines, foodSubtotal, lineCount, totalQuantity}"""
        if cart is None:
            return {"id": None, "lines": [], "foodSubtotal": 0, "lineCount": 0, "totalQuantity": 0}

        lines = self.get_lines(cart.id)
        choices = self.get_line_choices([line.id for line in lines])
        return {
            "id": str(cart.id),
            "lines": [serialize_line(line, choices.get(line.id, [])) for line in lines],
            "foodSubtotal": sum(line.total_price for line in lines),
            "lineCount": len(lines),
            "totalQuantity": sum(line.quantity for line in lines),
        }

    def get_summary(self, user_id: uuid.UUID) -> Dict[str, Any]:
        return self.summarize(self.get_active_cart(user_id))


def serialize_line(line: CartItem, choices: List[CartItemChoice]) -> Dict[str, Any]:
    return {
        "id": str(line.id),
        "menuItemId": str(line.menu_item_id),
        "menuCode": line.menu_code,
        "name": line.menu_item_name,
        "nameMm": line.menu_item_name_mm,
        "basePrice": line.base_price,
        "addonsTotal": line.addons_total,
        "unitPrice": line.unit_price,
        "quantity": line.quantity,
        "totalPrice": line.total_price,
        "note": line.note,
        "choices": [
            {
                "poolLinkId": str(choice.pool_link_id),
                "optionId": str(choice.option_id),
                "groupName": choice.group_name,
                "groupNameMm": choice.group_name_mm,
                "optionName": choice.option_name,
                "optionNameMm": choice.option_name_mm,
                "menuCode": choice.menu_code,
                "extraPrice": choice.extra_price,
                "selectionRole": choice.selection_role,
            }
            for choice in choices
        ],
    }
