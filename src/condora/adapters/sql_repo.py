# src/condora/adapters/sql_repo.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import JSON, Column, Field, Session, SQLModel, create_engine, select

from condora.adapters.logging_utils import get_logger
from condora.domain.errors import PersistenceError
from condora.domain.listing import PropertyRecord

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------- Property storage ----------

class PropertyRow(SQLModel, table=True):
    __tablename__ = "properties"

    id: int | None = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=_utcnow, index=True)
    updated_at: datetime = Field(default_factory=_utcnow)

    title: str
    description: str = ""
    project_description: str | None = None
    project_name: str = Field(index=True)
    developer_name: str | None = None

    location: str = ""
    district: str = Field(default="", index=True)
    country: str = Field(default="Singapore")
    postal_code: str | None = None
    lat: float | None = None
    lng: float | None = None

    property_type: str = Field(default="Condominium", index=True)
    tenure: str | None = None
    status: str = Field(default="available")
    launch_type: str = Field(default="new-launch", index=True)
    project_status: str | None = None

    no_of_units: int | None = None
    no_of_blocks: int | None = None
    storey_range: str | None = None
    site_area_sqm: float | None = None

    price: float = Field(default=0.0, index=True)
    psf: float = Field(default=0.0)
    bedrooms: int = Field(default=0)
    bathrooms: int = Field(default=0)
    sqft: int = Field(default=0)
    bedroom_type: str | None = None
    unit_size_range: str | None = None

    launch_date: str | None = None
    completion_date: str | None = None

    image_url: str = ""
    agent_name: str = ""
    agent_phone: str = ""
    agent_email: str = ""
    expected_roi: float | None = None

    is_featured: bool = Field(default=False)
    is_overseas: bool = Field(default=False)

    unit_mix: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    nearby_schools: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    nearby_mrt: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    nearby_amenities: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    image_urls: list[str] = Field(default_factory=list, sa_column=Column(JSON))


_COLUMNS = [name for name in PropertyRow.model_fields if name not in ("id", "created_at", "updated_at")]


def _row_to_record(row: PropertyRow) -> PropertyRecord:
    out: dict[str, Any] = {name: getattr(row, name) for name in _COLUMNS}
    out["id"] = row.id
    out["created_at"] = row.created_at.isoformat() if row.created_at else None
    out["updated_at"] = row.updated_at.isoformat() if row.updated_at else None
    return out  # type: ignore[return-value]


def _known(record: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in record.items() if k in _COLUMNS and v is not None}


class SqlPropertyRepository:
    def __init__(self, uri: str = "sqlite:///condora.db"):
        self.engine = create_engine(uri, echo=False)
        SQLModel.metadata.create_all(self.engine)

    def create(self, record: PropertyRecord) -> PropertyRecord:
        try:
            row = PropertyRow(**_known(dict(record)))
            with Session(self.engine) as session:
                session.add(row)
                session.commit()
                session.refresh(row)
                return _row_to_record(row)
        except SQLAlchemyError as err:
            raise PersistenceError(f"insert failed: {err}") from err

    def find_by_project_name(self, project_name: str) -> list[PropertyRecord]:
        with Session(self.engine) as session:
            stmt = select(PropertyRow).where(PropertyRow.project_name == project_name)
            return [_row_to_record(r) for r in session.exec(stmt)]

    def delete_by_project_name(self, project_name: str) -> int:
        try:
            with Session(self.engine) as session:
                stmt = select(PropertyRow).where(PropertyRow.project_name == project_name)
                rows = list(session.exec(stmt))
                for r in rows:
                    session.delete(r)
                session.commit()
                return len(rows)
        except SQLAlchemyError as err:
            raise PersistenceError(f"delete failed: {err}") from err

    def get(self, property_id: int) -> PropertyRecord | None:
        with Session(self.engine) as session:
            row = session.get(PropertyRow, property_id)
            return _row_to_record(row) if row else None

    def update(self, property_id: int, partial: dict[str, Any]) -> PropertyRecord | None:
        try:
            with Session(self.engine) as session:
                row = session.get(PropertyRow, property_id)
                if row is None:
                    return None
                for field, value in partial.items():
                    if field in _COLUMNS:
                        setattr(row, field, value)
                row.updated_at = _utcnow()
                session.add(row)
                session.commit()
                session.refresh(row)
                return _row_to_record(row)
        except SQLAlchemyError as err:
            raise PersistenceError(f"update failed: {err}") from err

    def delete(self, property_id: int) -> bool:
        try:
            with Session(self.engine) as session:
                row = session.get(PropertyRow, property_id)
                if row is None:
                    return False
                session.delete(row)
                session.commit()
                return True
        except SQLAlchemyError as err:
            raise PersistenceError(f"delete failed: {err}") from err

    def list_all(self, limit: int = 200) -> list[PropertyRecord]:
        with Session(self.engine) as session:
            stmt = select(PropertyRow).order_by(PropertyRow.id).limit(limit)
            return [_row_to_record(r) for r in session.exec(stmt)]

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
        stmt = select(PropertyRow)
        if location:
            needle = f"%{location.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(PropertyRow.location).like(needle),
                    func.lower(PropertyRow.district).like(needle),
                    func.lower(PropertyRow.country).like(needle),
                )
            )
        if property_type:
            stmt = stmt.where(PropertyRow.property_type == property_type)
        if bedrooms:
            stmt = stmt.where(PropertyRow.bedrooms == bedrooms)
        if bathrooms:
            stmt = stmt.where(PropertyRow.bathrooms == bathrooms)
        if min_price:
            stmt = stmt.where(PropertyRow.price >= min_price)
        if max_price:
            stmt = stmt.where(PropertyRow.price <= max_price)
        if min_sqft:
            stmt = stmt.where(PropertyRow.sqft >= min_sqft)
        if max_sqft:
            stmt = stmt.where(PropertyRow.sqft <= max_sqft)
        if is_overseas is not None:
            stmt = stmt.where(PropertyRow.is_overseas == is_overseas)
        if launch_type:
            stmt = stmt.where(PropertyRow.launch_type == launch_type)
        stmt = stmt.order_by(PropertyRow.price).limit(limit)

        with Session(self.engine) as session:
            rows = list(session.exec(stmt))
        logger.debug("property_search", extra={"context": {"hits": len(rows)}})
        return [_row_to_record(r) for r in rows]
