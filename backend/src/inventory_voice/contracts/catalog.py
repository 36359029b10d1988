"""Catalog records and the read-only access contracts the assistant needs from them."""

from __future__ import annotations

from datetime import date
from typing import Generic, Iterable, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict


class CatalogEntity(BaseModel):
    """A named catalog record (maintainer, location or assignee)."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    is_active: bool = True

    def secondary_fields(self) -> list[str]:
        """Extra text fields the resolver may match against besides the name."""
        return []


class Maintainer(CatalogEntity):
    """Maintenance company, technician or supplier."""

    email: str | None = None
    phone: str | None = None
    city: str | None = None
    specialization: str | None = None
    is_supplier: bool = False


class Location(CatalogEntity):
    """Place where an asset lives (room, floor, storage...)."""

    building: str | None = None
    floor_name: str | None = None
    department: str | None = None

    @property
    def full_path(self) -> str:
        """Path such as "Hospice > Piano 1 > Camera 15"."""
        return " > ".join(p for p in (self.building, self.floor_name, self.name) if p)


class Assignee(CatalogEntity):
    """Person or department an asset is assigned to."""

    department: str | None = None
    phone: str | None = None
    email: str | None = None

    def secondary_fields(self) -> list[str]:
        return [self.department] if self.department else []


class Product(BaseModel):
    """Inventory asset, as much of it as the conversation needs."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: str
    location: str
    brand: str | None = None
    model: str | None = None
    barcode: str | None = None
    warranty_maintainer_id: str | None = None
    service_maintainer_id: str | None = None
    warranty_end_date: date | None = None
    next_maintenance_due: date | None = None

    def maintenance_days_remaining(self, today: date) -> int | None:
        """Days until the next maintenance (negative when overdue)."""
        if self.next_maintenance_due is None:
            return None
        return (self.next_maintenance_due - today).days

    def warranty_status_text(self, today: date) -> str:
        if self.warranty_end_date is None:
            return "Nessuna garanzia registrata"
        if self.warranty_end_date < today:
            return f"Scaduta il {self.warranty_end_date.isoformat()}"
        return f"In garanzia fino al {self.warranty_end_date.isoformat()}"


EntityT = TypeVar("EntityT", bound=CatalogEntity, covariant=True)


class CatalogReader(Protocol[EntityT]):
    """Read access to one entity kind. Snapshots only need to be reasonably fresh."""

    def list_active(self) -> list[EntityT]: ...


class ProductCatalog(Protocol):
    """Read access to the product inventory."""

    def search(self, query: str) -> list[Product]: ...

    def get_by_barcode(self, barcode: str) -> Product | None: ...

    def count_overdue_maintenance(self) -> int: ...


T = TypeVar("T", bound=CatalogEntity)


class InMemoryCatalog(Generic[T]):
    """List-backed CatalogReader, used for tests and local runs."""

    def __init__(self, entities: Iterable[T] | None = None):
        self._entities: list[T] = list(entities or [])

    def list_active(self) -> list[T]:
        return [e for e in self._entities if e.is_active]

    def add(self, entity: T) -> str:
        self._entities.append(entity)
        return entity.id


class InMemoryProductCatalog:
    """List-backed ProductCatalog with substring search."""

    def __init__(self, products: Iterable[Product] | None = None, today: date | None = None):
        self._products: list[Product] = list(products or [])
        self._today = today

    def search(self, query: str) -> list[Product]:
        needle = query.lower().strip()
        if not needle:
            return []
        return [
            p
            for p in self._products
            if needle in p.name.lower()
            or needle in p.location.lower()
            or needle in p.category.lower()
            or (p.brand is not None and needle in p.brand.lower())
        ]

    def get_by_barcode(self, barcode: str) -> Product | None:
        for product in self._products:
            if product.barcode == barcode:
                return product
        return None

    def count_overdue_maintenance(self) -> int:
        today = self._today or date.today()
        return sum(
            1
            for p in self._products
            if (days := p.maintenance_days_remaining(today)) is not None and days < 0
        )

