from contextlib import contextmanager
from decimal import Decimal

from sqlalchemy import Numeric, String, create_engine
from sqlalchemy.orm import Session, sessionmaker, DeclarativeBase
from sqlalchemy.types import TypeDecorator

from launchpad.core.config import settings
from launchpad.core.constants import U64_MAX

_engine_kwargs = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # TestClient and local scripts may access SQLite connections across threads.
    _engine_kwargs["connect_args"] = {"check_same_thread": False}

engine = create_engine(settings.DATABASE_URL, **_engine_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


class U64(TypeDecorator):
    """
    Unsigned 64-bit integer column.

    Stored as NUMERIC(20, 0) where the backend has exact decimals. SQLite
    would degrade values above 2**63 to REAL, so there it is stored as text.
    Always loaded back as a Python int.
    """

    impl = Numeric(20, 0)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(20))
        return dialect.type_descriptor(Numeric(20, 0))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = int(value)
        if not 0 <= value <= U64_MAX:
            raise ValueError(f"value {value} does not fit in an unsigned 64-bit column")
        if dialect.name == "sqlite":
            return str(value)
        return Decimal(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


@contextmanager
def atomic(db: Session):
    """
    Run one state transition as a single transaction.

    Commits when the block exits cleanly; any exception rolls back every
    pending mutation and propagates to the caller.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
