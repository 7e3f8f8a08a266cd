from __future__ import annotations

import copy
import threading
from datetime import datetime, timezone
from typing import Any

from condora.domain.listing import PropertyRecord
from condora.domain.ports import PropertyRepository


class InMemoryPropertyRepository(PropertyRepository):
    def __init__(self) -> None:
        self._items: dict[int, dict[str, Any]] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def create(self, record: PropertyRecord) -> PropertyRecord:
        with self._lock:
            rec = copy.deepcopy(dict(record))
            rec["id"] = self._next_id
            rec["created_at"] = rec["updated_at"] = datetime.now(timezone.utc).isoformat()
            self._items[self._next_id] = rec
            self._next_id += 1
            return copy.deepcopy(rec)  # type: ignore[return-value]

    def find_by_project_name(self, project_name: str) -> list[PropertyRecord]:
        with self._lock:
            return [
                copy.deepcopy(r)  # type: ignore[misc]
                for r in self._items.values()
                if r.get("project_name") == project_name
            ]

    def delete_by_project_name(self, project_name: str) -> int:
        with self._lock:
            ids = [i for i, r in self._items.items() if r.get("project_name") == project_name]
            for i in ids:
                del self._items[i]
            return len(ids)

    def get(self, property_id: int) -> PropertyRecord | None:
        with self._lock:
            rec = self._items.get(property_id)
            return copy.deepcopy(rec) if rec else None  # type: ignore[return-value]

    def update(self, property_id: int, partial: dict[str, Any]) -> PropertyRecord | None:
        with self._lock:
            rec = self._items.get(property_id)
            if rec is None:
                return None
            rec.update({k: v for k, v in partial.items() if k != "id"})
            rec["updated_at"] = datetime.now(timezone.utc).isoformat()
            return copy.deepcopy(rec)  # type: ignore[return-value]

    def delete(self, property_id: int) -> bool:
        with self._lock:
            return self._items.pop(property_id, None) is not None

    def list_all(self, limit: int = 200) -> list[PropertyRecord]:
        with self._lock:
            return [copy.deepcopy(r) for r in list(self._items.values())[:limit]]  # type: ignore[misc]

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
        def ok(r: dict[str, Any]) -> bool:
            if location:
                needle = location.lower()
                haystacks = [str(r.get(k) or "").lower() for k in ("location", "district", "country")]
                if not any(needle in h for h in haystacks):
                    return False
            if property_type and r.get("property_type") != property_type:
                return False
            if bedrooms and r.get("bedrooms") != bedrooms:
                return False
            if bathrooms and r.get("bathrooms") != bathrooms:
                return False
            price = r.get("price") or 0.0
            if min_price and price < min_price:
                return False
            if max_price and price > max_price:
                return False
            sqft = r.get("sqft") or 0
            if min_sqft and sqft < min_sqft:
                return False
            if max_sqft and sqft > max_sqft:
                return False
            if is_overseas is not None and bool(r.get("is_overseas")) != is_overseas:
                return False
            if launch_type and r.get("launch_type") != launch_type:
                return False
            return True

        with self._lock:
            hits = [copy.deepcopy(r) for r in self._items.values() if ok(r)]
        return hits[:limit]  # type: ignore[return-value]
