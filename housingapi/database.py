"""Relational storage for housings, housing types, statuses and visits."""

from __future__ import annotations

import os
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, TypeVar, Union

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    MetaData,
    String,
    Table,
    Uuid,
    create_engine,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.engine import URL, Row

from .merge import merge_nonzero
from .models import ZERO_UUID, Housing, HousingBody, HousingType, Status, Visit

R = TypeVar("R")
UUIDLike = Union[uuid.UUID, str]

metadata = MetaData()

housings_table = Table(
    "housings",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("title", String),
    Column("type_id", Uuid),
    Column("surface_area", Float),
    Column("rent_price", Float),
    Column("rental_charges", Float),
    Column("description", String),
    Column("country", String),
    Column("state", String),
    Column("city", String),
    Column("street", String),
    Column("zip", String),
    Column("latitude", Float),
    Column("longitude", Float),
    Column("is_furnished", Boolean),
    Column("has_electricity", Boolean),
    Column("has_gas", Boolean),
    Column("is_published", Boolean),
    Column("status_id", Uuid),
    Column("owner_id", Uuid),
    Column("last_tenant_id", Uuid),
    Column("stripe_product_id", String),
    Column("stripe_price_id", String),
    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
)

housing_types_table = Table(
    "housing_types",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("name", String),
    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
)

statuses_table = Table(
    "statuses",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("name", String),
    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
)

visits_table = Table(
    "visits",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("date", DateTime(timezone=True)),
    Column("hour", String),
    Column("is_accepted", Boolean),
    Column("housing_id", Uuid),
    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
)


class RecordNotFound(LookupError):
    """Raised when a lookup by identifier matches no row."""


def _as_uuid(value: UUIDLike) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


def _as_number(value: str, label: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"invalid {label}: {value!r}") from exc


def _to_record(cls: type[R], row: Row) -> R:
    return cls(**{key: value for key, value in row._mapping.items() if value is not None})


def _to_row(record: Any, table: Table) -> dict:
    return {column.name: getattr(record, column.name) for column in table.columns}


def _prepare_new(record: Any) -> None:
    if record.id == ZERO_UUID:
        record.id = uuid.uuid4()
    now = datetime.now(timezone.utc)
    if record.created_at is None:
        record.created_at = now
    if record.updated_at is None:
        record.updated_at = now


class Database:
    """Access to the API's tables through one SQLAlchemy engine."""

    def __init__(self, url: Union[str, URL]) -> None:
        self._engine = create_engine(url)
        metadata.create_all(self._engine)

    @classmethod
    def from_env(cls) -> "Database":
        """Connect using DATABASE_URL, or the DB_* variables for PostgreSQL."""
        url = os.environ.get("DATABASE_URL")
        if url:
            return cls(url)
        port = os.environ.get("DB_PORT")
        return cls(
            URL.create(
                "postgresql",
                username=os.environ.get("DB_USER") or None,
                password=os.environ.get("DB_PASSWORD") or None,
                host=os.environ.get("DB_HOST") or None,
                port=int(port) if port else None,
                database=os.environ.get("DB_NAME") or None,
            )
        )

    # -- generic helpers -------------------------------------------------

    def _insert(self, table: Table, record: R) -> R:
        _prepare_new(record)
        with self._engine.begin() as conn:
            conn.execute(insert(table).values(**_to_row(record, table)))
        return record

    def _select_all(self, cls: type[R], stmt) -> list[R]:
        with self._engine.connect() as conn:
            return [_to_record(cls, row) for row in conn.execute(stmt)]

    def _select_one(self, cls: type[R], table: Table, record_id: UUIDLike) -> R:
        stmt = select(table).where(table.c.id == _as_uuid(record_id))
        with self._engine.connect() as conn:
            row = conn.execute(stmt).first()
        if row is None:
            raise RecordNotFound(f"no {table.name} row with id {record_id}")
        return _to_record(cls, row)

    def _update(self, table: Table, record_id: UUIDLike, **values: Any) -> None:
        with self._engine.begin() as conn:
            conn.execute(update(table).where(table.c.id == _as_uuid(record_id)).values(**values))

    # -- housings --------------------------------------------------------

    def create_housing(self, housing: Housing) -> Housing:
        return self._insert(housings_table, housing)

    def get_all_housing(self) -> list[Housing]:
        return self._select_all(Housing, select(housings_table).order_by(housings_table.c.created_at))

    def get_housing_by_type(self, housing_type_id: UUIDLike) -> list[Housing]:
        stmt = (
            select(housings_table)
            .where(housings_table.c.type_id == _as_uuid(housing_type_id))
            .order_by(housings_table.c.created_at)
        )
        return self._select_all(Housing, stmt)

    def delete_housing_by_id(self, housing_id: UUIDLike) -> None:
        with self._engine.begin() as conn:
            conn.execute(delete(housings_table).where(housings_table.c.id == _as_uuid(housing_id)))

    def update_housing_by_id(self, housing: Housing, updated: HousingBody) -> Housing:
        """Apply the non-zero fields of ``updated`` to ``housing`` and save it."""
        merge_nonzero(housing, updated)
        values = _to_row(housing, housings_table)
        values.pop("id")
        self._update(housings_table, housing.id, **values)
        return housing

    def get_housing_by_id(self, housing_id: UUIDLike) -> Housing:
        return self._select_one(Housing, housings_table, housing_id)

    def update_housing_status(self, housing_id: UUIDLike, status_id: UUIDLike) -> None:
        self._update(housings_table, housing_id, status_id=_as_uuid(status_id))

    def update_housing_publication_status(self, housing_id: UUIDLike, is_published: bool) -> None:
        self._update(housings_table, housing_id, is_published=bool(is_published))

    def get_housing_by_owner_id(self, owner_id: UUIDLike) -> list[Housing]:
        stmt = select(housings_table).where(housings_table.c.owner_id == _as_uuid(owner_id))
        return self._select_all(Housing, stmt)

    def get_filtered_housing(
        self,
        housing_type: UUIDLike,
        city: str,
        max_rent_price: Optional[str],
        min_surface_area: Optional[str],
        status_id: UUIDLike,
    ) -> list[Housing]:
        """Housings of a type, city and status; empty price or area bounds are ignored."""
        table = housings_table
        stmt = select(table).where(
            table.c.city == city,
            table.c.type_id == _as_uuid(housing_type),
            table.c.status_id == _as_uuid(status_id),
        )
        if max_rent_price:
            stmt = stmt.where(table.c.rent_price <= _as_number(max_rent_price, "rent price"))
        if min_surface_area:
            stmt = stmt.where(table.c.surface_area >= _as_number(min_surface_area, "surface area"))
        return self._select_all(Housing, stmt)

    # -- housing types ---------------------------------------------------

    def create_housing_type(self, housing_type: HousingType) -> HousingType:
        return self._insert(housing_types_table, housing_type)

    def get_all_housing_types(self) -> list[HousingType]:
        stmt = select(housing_types_table).order_by(housing_types_table.c.created_at)
        return self._select_all(HousingType, stmt)

    def get_housing_type_by_id(self, housing_type_id: UUIDLike) -> HousingType:
        return self._select_one(HousingType, housing_types_table, housing_type_id)

    # -- statuses --------------------------------------------------------

    def create_housing_status(self, status: Status) -> Status:
        return self._insert(statuses_table, status)

    def get_all_housing_statuses(self) -> list[Status]:
        return self._select_all(Status, select(statuses_table).order_by(statuses_table.c.created_at))

    def get_status_by_id(self, status_id: UUIDLike) -> Status:
        return self._select_one(Status, statuses_table, status_id)

    # -- visits ----------------------------------------------------------

    def create_visit(self, visit: Visit) -> Visit:
        return self._insert(visits_table, visit)

    def get_visit_by_housing_id(self, housing_id: UUIDLike) -> list[Visit]:
        stmt = select(visits_table).where(visits_table.c.housing_id == _as_uuid(housing_id))
        return self._select_all(Visit, stmt)

    def get_visit_booking_by_id(self, visit_id: UUIDLike) -> Visit:
        return self._select_one(Visit, visits_table, visit_id)

    def accept_visit(self, visit_id: UUIDLike) -> None:
        self._update(visits_table, visit_id, is_accepted=True)