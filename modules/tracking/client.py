"""Data client: filtered reads and single-row writes over named tables.

Every mutation commits on its own, like a REST table API would. Callers
address tables by name ("projects", "phases", ...) and get ORM rows back.

Usage:
    client = DataClient(session)
    phases = client.select("phases", {"project_id": pid}, order_by="order_index")
    client.update("phases", phase_id, {"progress_percentage": 80})
"""
import logging
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from .models import TABLES

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A request against the backing store failed."""


class NoRowsError(StoreError):
    """A single-row request matched no row."""


class DataClient:
    """Thin wrapper issuing table requests through one SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def model(self, table: str):
        try:
            return TABLES[table]
        except KeyError:
            raise StoreError(f"relation \"{table}\" does not exist") from None

    def _column(self, model, name: str):
        columns = inspect(model).columns
        if name not in columns:
            raise StoreError(
                f"column {model.__tablename__}.{name} does not exist"
            )
        return getattr(model, name)

    def _loader(self, model, path: str):
        """Build a selectinload chain for 'a' or 'a.b'."""
        current = model
        option = None
        for part in path.split("."):
            rel = inspect(current).relationships.get(part)
            if rel is None:
                raise StoreError(
                    f"no relationship '{part}' on {current.__tablename__}"
                )
            attr = getattr(current, part)
            option = selectinload(attr) if option is None else option.selectinload(attr)
            current = rel.mapper.class_
        return option

    def _query(
        self,
        table: str,
        filters: Optional[dict] = None,
        where: Sequence = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        embed: Iterable[str] = (),
    ):
        model = self.model(table)
        stmt = select(model)
        for name, value in (filters or {}).items():
            column = self._column(model, name)
            if isinstance(value, (list, tuple, set)):
                stmt = stmt.where(column.in_(list(value)))
            elif value is None:
                stmt = stmt.where(column.is_(None))
            else:
                stmt = stmt.where(column == value)
        for clause in where:
            stmt = stmt.where(clause)
        if order_by:
            column = self._column(model, order_by)
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        for path in embed:
            stmt = stmt.options(self._loader(model, path))
        return stmt

    def _fail(self, action: str, table: str, exc: Exception):
        self.session.rollback()
        logger.error(f"{action} on {table} failed: {exc}")
        raise StoreError(str(exc)) from exc

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    def select(
        self,
        table: str,
        filters: Optional[dict] = None,
        *,
        where: Sequence = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        embed: Iterable[str] = (),
        limit: Optional[int] = None,
    ) -> list:
        """Filtered, ordered read. Filter values that are lists become IN."""
        stmt = self._query(table, filters, where, order_by, descending, embed)
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            return list(self.session.scalars(stmt).all())
        except SQLAlchemyError as e:
            self._fail("select", table, e)

    def single(
        self,
        table: str,
        filters: Optional[dict] = None,
        *,
        where: Sequence = (),
        order_by: Optional[str] = None,
        embed: Iterable[str] = (),
    ):
        """First matching row; raises NoRowsError when nothing matches."""
        rows = self.select(
            table, filters, where=where, order_by=order_by, embed=embed, limit=1
        )
        if not rows:
            raise NoRowsError(f"no rows returned from {table}")
        return rows[0]

    def get(self, table: str, row_id: Any):
        try:
            row = self.session.get(self.model(table), row_id)
        except SQLAlchemyError as e:
            self._fail("get", table, e)
        if row is None:
            raise NoRowsError(f"{table} row {row_id} not found")
        return row

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------

    def _assign(self, model, row, values: dict):
        """Set every value, or none: unknown columns are rejected up front."""
        for name in values:
            self._column(model, name)
        for name, value in values.items():
            setattr(row, name, value)

    def build(self, table: str, values: dict):
        """A new, unsaved row of table."""
        model = self.model(table)
        row = model()
        self._assign(model, row, values)
        return row

    def save(self, row):
        """Add a row (with any related rows attached to it) in one commit."""
        try:
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail("insert", row.__tablename__, e)
        return row

    def insert(self, table: str, values: dict):
        row = self.save(self.build(table, values))
        logger.debug(f"Inserted {table} row {row.id}")
        return row

    def insert_many(self, table: str, rows: Sequence[dict]) -> list:
        created = [self.build(table, values) for values in rows]
        try:
            self.session.add_all(created)
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail("insert", table, e)
        return created

    def update(self, table: str, row_id: Any, values: dict):
        model = self.model(table)
        row = self.get(table, row_id)
        try:
            self._assign(model, row, values)
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail("update", table, e)
        except (StoreError, ValueError, TypeError):
            # Attribute validators may reject a value after others were set
            self.session.rollback()
            raise
        return row

    def delete(self, table: str, row_id: Any) -> int:
        """Delete by id. Returns number of deleted rows (0 or 1)."""
        model = self.model(table)
        try:
            row = self.session.get(model, row_id)
            if row is None:
                return 0
            self.session.delete(row)
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail("delete", table, e)
        return 1

    def reorder(
        self,
        table: str,
        ids: Sequence[Any],
        key: str = "order_index",
        scope: Optional[dict] = None,
    ) -> list:
        """Rewrite key = position + 1 for every id, in one transaction.

        Either every row gets its new position or none does. Ids must be
        distinct and, with scope, every row must match the scope filters.
        """
        model = self.model(table)
        column = self._column(model, key)
        ids = list(ids)
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise StoreError(f"duplicate {table} ids in new order: {duplicates}")
        stmt = self._query(table, scope).where(model.id.in_(ids))
        try:
            rows = {r.id: r for r in self.session.scalars(stmt).all()}
            missing = [i for i in ids if i not in rows]
            if missing:
                self.session.rollback()
                raise NoRowsError(f"{table} rows not found: {missing}")
            ordered = []
            for position, row_id in enumerate(ids):
                row = rows[row_id]
                setattr(row, column.key, position + 1)
                ordered.append(row)
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail("reorder", table, e)
        return ordered
