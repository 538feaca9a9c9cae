"""
Delivery location management
"""

from datetime import datetime
from typing import Any, Dict, List
from sqlmodel import Session, select
import uuid
import structlog

from campus_order.core.errors import InvalidPayload, NotFound
from campus_order.models.delivery_location import DeliveryBuilding, DeliveryLocation
from campus_order.models.user import User
from campus_order.schemas.delivery import (
    FEE_ORDER_MESSAGE, DeliveryLocationCreate, DeliveryLocationUpdate,
)
from campus_order.services.slugs import insert_with_unique_slug

logger = structlog.get_logger(__name__)

LOCATION_NOT_FOUND = "Delivery location not found"


def serialize_location(location: DeliveryLocation) -> Dict[str, Any]:
    buildings = sorted(location.buildings, key=lambda building: building.label.lower())
    return {
        "id": str(location.id),
        "slug": location.slug,
        "condoName": location.condo_name,
        "area": location.area,
        "minFee": location.min_fee,
        "maxFee": location.max_fee,
        "notes": location.notes,
        "isActive": location.is_active,
        "buildings": [{"id": str(building.id), "label": building.label} for building in buildings],
        "createdAt": location.created_at.isoformat(),
        "updatedAt": location.updated_at.isoformat() if location.updated_at else None,
    }


class DeliveryLocationService:
    def __init__(self, session: Session):
        self.session = session

    def list_locations(self, active_only: bool = False) -> List[DeliveryLocation]:
        query = select(DeliveryLocation).order_by(DeliveryLocation.condo_name, DeliveryLocation.created_at)
        if active_only:
            query = query.where(DeliveryLocation.is_active == True)  # noqa: E712
        return list(self.session.exec(query).all())

    def get_location(self, location_id: uuid.UUID) -> DeliveryLocation:
        location = self.session.get(DeliveryLocation, location_id)
        if location is None:
            raise NotFound(LOCATION_NOT_FOUND)
        return location

    def create_location(self, data: DeliveryLocationCreate) -> DeliveryLocation:
        """Insert a location under a unique slug derived from its condo name"""
        def build(slug: str) -> DeliveryLocation:
            location = DeliveryLocation(
                slug=slug,
                condo_name=data.condo_name,
                area=data.area,
                min_fee=data.min_fee,
                max_fee=data.max_fee,
                notes=data.notes,
                is_active=data.is_active,
            )
            location.buildings = [DeliveryBuilding(label=label) for label in data.buildings]
            return location

        location = insert_with_unique_slug(self.session, data.condo_name, build)
        logger.info(f"Created delivery location {location.id} with slug {location.slug}")
        return location

    def update_location(self, location_id: uuid.UUID, data: DeliveryLocationUpdate) -> DeliveryLocation:
        location = self.get_location(location_id)
        changes = data.model_dump(exclude_unset=True)

        min_fee = changes.get("min_fee", location.min_fee)
        max_fee = changes.get("max_fee", location.max_fee)
        if min_fee is None or max_fee is None:
            raise InvalidPayload("Fees cannot be empty")
        if max_fee < min_fee:
            raise InvalidPayload(FEE_ORDER_MESSAGE)

        buildings = changes.pop("buildings", None)
        for key, value in changes.items():
            if value is None and key != "notes":
                raise InvalidPayload(f"{key} cannot be empty")
            setattr(location, key, value)
        if buildings is not None:
            location.buildings = [DeliveryBuilding(label=label) for label in buildings]
            self._clear_preferences(location.id, building_only=True)
        location.updated_at = datetime.utcnow()

        self.session.add(location)
        self.session.commit()
        self.session.refresh(location)
        logger.info(f"Updated delivery location {location.id}")
        return location

    def delete_location(self, location_id: uuid.UUID):
        location = self.get_location(location_id)
        self._clear_preferences(location.id)
        self.session.delete(location)
        self.session.commit()
        logger.info(f"Deleted delivery location {location_id}")

    def _clear_preferences(self, location_id: uuid.UUID, building_only: bool = False):
        """Drop saved customer defaults that point at a removed location or its old buildings"""
        users = self.session.exec(select(User).where(User.default_delivery_location_id == location_id)).all()
        for user in users:
            user.default_delivery_building_id = None
            if not building_only:
                user.default_delivery_location_id = None
            self.session.add(user)

    def resolve_building(self, location: DeliveryLocation, building_id: uuid.UUID) -> DeliveryBuilding:
        for building in location.buildings:
            if building.id == building_id:
                return building
        raise NotFound("Building not found for this delivery location")
