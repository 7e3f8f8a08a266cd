# src/condora/domain/ports.py
from __future__ import annotations

from typing import Any, Protocol

from condora.domain.listing import PropertyRecord


# ----------------------------
# Property storage
# ----------------------------

class PropertyRepository(Protocol):
    def create(self, record: PropertyRecord) -> PropertyRecord:
        ...

    def find_by_project_name(self, project_name: str) -> list[PropertyRecord]:
        ...

    def delete_by_project_name(self, project_name: str) -> int:
        ...

    def get(self, property_id: int) -> PropertyRecord | None:
        ...

    def update(self, property_id: int, partial: dict[str, Any]) -> PropertyRecord | None:
        ...

    def delete(self, property_id: int) -> bool:
        ...

    def list_all(self, limit: int = 200) -> list[PropertyRecord]:
        ...

    def search(
        self,
        *,
        location: str | None = None,
        property_type: str | None = None,
        bedrooms: int | None = None,
        bathrooms: int | None = None,
        min_price: float | None = None,
        max_price: float | None = None,
        min_sqft: int | None = None,
        max_sqft: int | None = None,
        is_overseas: bool | None = None,
        launch_type: str | None = None,
        limit: int = 200,
    ) -> list[PropertyRecord]:
        ...


# ----------------------------
# Document sources
# ----------------------------

class DocumentSource(Protocol):
    def fetch(self, url: str) -> str:
        ...


class BinaryDocumentSource(Protocol):
    def read(self, data: bytes) -> str:
        ...
