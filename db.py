from decimal import Decimal
from typing import Iterator, Optional

from sqlalchemy import Integer, Numeric, String, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import TypeDecorator

from config import get_settings


class ExactDecimal(TypeDecorator):
    """Decimal column that never rounds.

    Backends with a native decimal type get an unconstrained NUMERIC.
    SQLite would store NUMERIC as a float, so there the value is kept as
    its decimal string instead.
    """

    impl = Numeric
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(64))
        return dialect.type_descriptor(Numeric(asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is not None and dialect.name == "sqlite":
            return str(Decimal(value))
        return value

    def process_result_value(self, value, dialect):
        if value is not None and dialect.name == "sqlite":
            return Decimal(value)
        return value


class Base(DeclarativeBase):
    pass


class Account(Base):
    __tablename__ = "cuenta"

    # Assigned by the store on insert
    id: Mapped[Optional[int]] = mapped_column(Integer, primary_key=True, autoincrement=True)
    nombre: Mapped[str] = mapped_column(String(255), nullable=False)
    cantidad: Mapped[Decimal] = mapped_column(ExactDecimal(), nullable=False)

    def __repr__(self) -> str:
        return f"Account(id={self.id!r}, nombre={self.nombre!r}, cantidad={self.cantidad!r})"


def _engine_kwargs(database_url: str, echo: bool) -> dict:
    kwargs = {"echo": echo}
    if database_url.startswith("sqlite"):
        # Requests are served from FastAPI's threadpool
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    return kwargs


settings = get_settings()
DATABASE_URL = settings.database_url

engine = create_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL, settings.database_echo))
SessionLocal = sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


def init_db() -> None:
    Base.metadata.create_all(bind=engine)


def get_session() -> Iterator[Session]:
    with SessionLocal() as session:
        yield session


# Para testes
def reset_database() -> None:
    """Drop and recreate every table (for testing only)."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
