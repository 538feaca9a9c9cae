"""
Delivery location models
"""

from sqlmodel import Field, SQLModel, Relationship
from datetime import datetime
from typing import List, Optional
import uuid


class DeliveryLocation(SQLModel, table=True):
    """Condo or dormitory that the shop delivers to"""

    __tablename__ = "delivery_locations"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    slug: str = Field(unique=True, index=True, max_length=140, description="URL-safe unique key derived from condo name")
    condo_name: str = Field(max_length=120, nullable=False)
    area: str = Field(default="AU", max_length=40)
    min_fee: int = Field(default=0, ge=0)
    max_fee: int = Field(default=0, ge=0)
    notes: Optional[str] = Field(default=None, max_length=200)
    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    buildings: List["DeliveryBuilding"] = Relationship(
        back_populates="location",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "DeliveryBuilding.label",
        },
    )


class DeliveryBuilding(SQLModel, table=True):
    """Building inside a delivery location"""

    __tablename__ = "delivery_buildings"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    location_id: uuid.UUID = Field(foreign_key="delivery_locations.id", index=True)
    label: str = Field(max_length=60, nullable=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    location: Optional[DeliveryLocation] = Relationship(back_populates="buildings")
