# =========================================================
# DATA SERVICE
#
# Generic query client used by every screen:
# - query / get / count with (column, op, value) filters
# - insert / insert_many / update / delete on single tables
#
# Each call commits on its own. Multi-step callers get no
# transaction spanning their calls.
# =========================================================

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from fastapi import Depends
from sqlalchemy import func, inspect
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from pos_console.database import get_db
from pos_console.models.stores import Store
from pos_console.models.users import UserProfile
from pos_console.models.customers import Customer
from pos_console.models.products import Product
from pos_console.models.sales import Sale
from pos_console.models.sale_items import SaleItem
from pos_console.models.credit_transactions import CreditTransaction

logger = logging.getLogger("pos_console")


TABLES = {
    "stores": Store,
    "users_profile": UserProfile,
    "customers": Customer,
    "products": Product,
    "sales": Sale,
    "sale_items": SaleItem,
    "credit_transactions": CreditTransaction,
}


@dataclass(frozen=True)
class ColumnRef:
    """Filter value pointing at another column of the same row."""

    name: str


OPERATORS = {
    "eq": lambda column, value: column == value,
    "neq": lambda column, value: column != value,
    "gt": lambda column, value: column > value,
    "gte": lambda column, value: column >= value,
    "lt": lambda column, value: column < value,
    "lte": lambda column, value: column <= value,
    "ilike": lambda column, value: column.ilike(value),
    "in": lambda column, value: column.in_(list(value)),
    "is": lambda column, value: column.is_(value),
}

Filter = tuple[str, str, Any]


class DataServiceError(Exception):
    """A query or mutation against the backing store failed."""

    def __init__(self, operation: str, table: str, message: str = "request failed"):
        super().__init__(f"{operation} on '{table}': {message}")
        self.operation = operation
        self.table = table
        self.message = message


class DataServiceConflictError(DataServiceError):
    """The store rejected a write that breaks a unique or check constraint."""


class DataService:
    def __init__(self, db: Session):
        self.db = db

    # ---------------- helpers ----------------

    def _model(self, operation: str, table: str):
        model = TABLES.get(table)
        if model is None:
            raise DataServiceError(operation, table, "unknown table")
        return model

    def _column(self, operation: str, table: str, model, name: str):
        if name not in model.__table__.columns:
            raise DataServiceError(operation, table, f"unknown column '{name}'")
        return getattr(model, name)

    def _conditions(self, operation: str, table: str, model, filters: Iterable[Filter]):
        conditions = []

        for name, op, value in filters:
            column = self._column(operation, table, model, name)

            if op not in OPERATORS:
                raise DataServiceError(operation, table, f"unknown operator '{op}'")

            if isinstance(value, ColumnRef):
                value = self._column(operation, table, model, value.name)

            conditions.append(OPERATORS[op](column, value))

        return conditions

    def _check_row(self, operation: str, table: str, model, row: dict):
        for name in row:
            self._column(operation, table, model, name)

    def _to_row(self, obj, columns: Sequence[str] | None = None, embed: dict | None = None) -> dict:
        names = columns or [column.key for column in obj.__table__.columns]
        row = {name: getattr(obj, name) for name in names}

        for relation, related_columns in (embed or {}).items():
            related = getattr(obj, relation)
            row[relation] = (
                {name: getattr(related, name) for name in related_columns}
                if related is not None
                else None
            )

        return row

    def _run(self, operation: str, table: str, fn):
        try:
            return fn()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning(f"Data service {operation} on {table} violated a constraint")
            raise DataServiceConflictError(operation, table, exc.__class__.__name__) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(f"Data service {operation} on {table} failed")
            raise DataServiceError(operation, table, exc.__class__.__name__) from exc

    # ---------------- reads ----------------

    def query(
        self,
        table: str,
        filters: Iterable[Filter] = (),
        order: Sequence[str] = (),
        limit: int | None = None,
        offset: int | None = None,
        columns: Sequence[str] | None = None,
        embed: dict[str, Sequence[str]] | None = None,
    ) -> list[dict]:
        model = self._model("query", table)
        conditions = self._conditions("query", table, model, filters)

        for name in columns or ():
            self._column("query", table, model, name)

        relationships = inspect(model).relationships
        for relation in embed or {}:
            if relation not in relationships:
                raise DataServiceError("query", table, f"unknown relation '{relation}'")

        ordering = []
        descending = False
        for key in order:
            descending = key.startswith("-")
            column = self._column("query", table, model, key.lstrip("-"))
            ordering.append(column.desc() if descending else column.asc())

        # Stable order between rows sharing the same sort key
        if ordering:
            ordering.append(model.id.desc() if descending else model.id.asc())

        def run():
            # Rows always reflect the store, never the session's identity map
            q = self.db.query(model).populate_existing()

            for relation in embed or {}:
                q = q.options(joinedload(getattr(model, relation)))

            q = q.filter(*conditions).order_by(*ordering)

            if limit is not None:
                q = q.limit(limit)
            if offset:
                q = q.offset(offset)

            return [self._to_row(obj, columns, embed) for obj in q.all()]

        return self._run("query", table, run)

    def get(self, table: str, row_id: int, filters: Iterable[Filter] = (), **kwargs) -> dict | None:
        rows = self.query(table, [("id", "eq", row_id), *filters], limit=1, **kwargs)
        return rows[0] if rows else None

    def count(self, table: str, filters: Iterable[Filter] = ()) -> int:
        model = self._model("count", table)
        conditions = self._conditions("count", table, model, filters)

        return self._run(
            "count",
            table,
            lambda: self.db.query(func.count(model.id)).filter(*conditions).scalar() or 0,
        )

    # ---------------- mutations ----------------

    def insert(self, table: str, row: dict) -> dict:
        return self.insert_many(table, [row])[0]

    def insert_many(self, table: str, rows: Sequence[dict]) -> list[dict]:
        model = self._model("insert", table)
        for row in rows:
            self._check_row("insert", table, model, row)

        def run():
            objects = [model(**row) for row in rows]
            self.db.add_all(objects)
            self.db.commit()

            for obj in objects:
                self.db.refresh(obj)

            return [self._to_row(obj) for obj in objects]

        return self._run("insert", table, run)

    def update(self, table: str, row_id: int, patch: dict, filters: Iterable[Filter] = ()) -> bool:
        model = self._model("update", table)
        self._check_row("update", table, model, patch)
        conditions = self._conditions("update", table, model, [("id", "eq", row_id), *filters])

        def run():
            matched = (
                self.db.query(model)
                .filter(*conditions)
                .update(patch, synchronize_session=False)
            )
            self.db.commit()
            return matched > 0

        return self._run("update", table, run)

    def delete(self, table: str, row_id: int, filters: Iterable[Filter] = ()) -> bool:
        model = self._model("delete", table)
        conditions = self._conditions("delete", table, model, [("id", "eq", row_id), *filters])

        def run():
            deleted = (
                self.db.query(model)
                .filter(*conditions)
                .delete(synchronize_session=False)
            )
            self.db.commit()
            return deleted > 0

        return self._run("delete", table, run)


def get_data_service(db: Session = Depends(get_db)) -> DataService:
    return DataService(db)
