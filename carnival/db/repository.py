import logging
from contextlib import contextmanager
from typing import Any, Generic, Iterable, List, Optional, Tuple, Type, TypeVar

from sqlalchemy.exc import (
    DataError,
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import Session

from carnival.core.errors import (
    ConflictError,
    DatabaseUnavailableError,
    DataIntegrityError,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


def _integrity_message(exc: IntegrityError) -> str:
    code = getattr(exc.orig, "pgcode", None)
    text = str(exc.orig).lower()
    if code == UNIQUE_VIOLATION or "unique" in text:
        return "A record with these values already exists"
    if code == FOREIGN_KEY_VIOLATION or "foreign key" in text:
        return "Referenced record does not exist"
    return "Database constraint violated"


@contextmanager
def translate_errors(db: Session):
    """Re-raise driver/ORM failures as the application's error types."""
    try:
        yield
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(_integrity_message(exc), details=[str(exc.orig)]) from exc
    except DataError as exc:
        db.rollback()
        raise DataIntegrityError(details=[str(exc.orig)]) from exc
    except (OperationalError, InterfaceError, DisconnectionError, PoolTimeoutError) as exc:
        db.rollback()
        logger.error("Database unavailable: %s", exc)
        raise DatabaseUnavailableError() from exc


class Repository(Generic[ModelT]):
    """Standard data operations for one entity type."""

    def __init__(self, db: Session, model: Type[ModelT]):
        self.db = db
        self.model = model

    def _query(self, criteria: Iterable[Any], options: Iterable[Any] = ()):
        query = self.db.query(self.model)
        if options:
            query = query.options(*options)
        for criterion in criteria:
            query = query.filter(criterion)
        return query

    def find_all(self, *criteria, order_by=None, options=(), limit: Optional[int] = None) -> List[ModelT]:
        with translate_errors(self.db):
            query = self._query(criteria, options)
            if order_by is not None:
                query = query.order_by(*order_by) if isinstance(order_by, (list, tuple)) else query.order_by(order_by)
            if limit is not None:
                query = query.limit(limit)
            return query.all()

    def get(self, ident: Any, options=()) -> Optional[ModelT]:
        if ident is None:
            return None
        with translate_errors(self.db):
            return self._query((self.model.id == str(ident),), options).first()

    def find_one(self, *criteria, order_by=None, options=()) -> Optional[ModelT]:
        found = self.find_all(*criteria, order_by=order_by, options=options, limit=1)
        return found[0] if found else None

    def find_by(self, **where) -> Optional[ModelT]:
        return self.find_one(*(getattr(self.model, key) == value for key, value in where.items()))

    def count(self, *criteria) -> int:
        with translate_errors(self.db):
            return self._query(criteria).count()

    def create(self, **values) -> ModelT:
        obj = self.model(**values)
        with translate_errors(self.db):
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
        return obj

    def update(self, obj: ModelT, **values) -> ModelT:
        for key, value in values.items():
            setattr(obj, key, value)
        with translate_errors(self.db):
            self.db.commit()
            self.db.refresh(obj)
        return obj

    def update_where(self, *criteria, **values) -> int:
        """Update every row matching ``criteria`` without committing; returns the row count."""
        with translate_errors(self.db):
            return self._query(criteria).update(values, synchronize_session="fetch")

    def delete(self, obj: ModelT) -> None:
        with translate_errors(self.db):
            self.db.delete(obj)
            self.db.commit()

    def find_or_create(self, defaults: Optional[dict] = None, **where) -> Tuple[ModelT, bool]:
        """Return ``(row, created)`` for the row matching ``where``.

        The insert is attempted directly; a uniqueness conflict means another
        writer got there first, so the existing row is read back instead.
        """
        existing = self.find_by(**where)
        if existing is not None:
            return existing, False
        try:
            return self.create(**{**(defaults or {}), **where}), True
        except ConflictError:
            existing = self.find_by(**where)
            if existing is None:
                raise
            return existing, False
