"""
Database schema and connection management.

Uses SQLAlchemy for the engine and table definitions. Repositories talk to
the database through `Database.query`, which takes SQL with `$1, $2, ...`
positional placeholders and an ordered list of values.
"""

import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    create_engine,
    event,
    text,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base

from .logger import StructuredLogger, get_logger

Base = declarative_base()

_PLACEHOLDER = re.compile(r"\$(\d+)")


class Company(Base):
    """Company that jobs belong to."""

    __tablename__ = "companies"

    handle = Column(String(25), primary_key=True)
    name = Column(Text, nullable=False, unique=True)
    num_employees = Column(Integer, CheckConstraint("num_employees >= 0"))
    description = Column(Text, nullable=False, default="")
    logo_url = Column(Text)


class Job(Base):
    """Job listing."""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True)
    title = Column(Text, nullable=False)
    salary = Column(Integer, CheckConstraint("salary >= 0"))
    equity = Column(Numeric, CheckConstraint("equity <= 1.0"))
    company_handle = Column(
        String(25),
        ForeignKey("companies.handle", ondelete="CASCADE"),
        nullable=False,
    )


def get_engine(database_url: str) -> Engine:
    """
    Create an engine for `database_url`.

    For file-backed SQLite databases the parent directory is created.
    """
    url = make_url(database_url)
    is_sqlite = url.get_backend_name() == "sqlite"
    connect_args = {}
    if is_sqlite:
        connect_args = {"check_same_thread": False}
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(database_url, connect_args=connect_args, future=True)
    if is_sqlite:
        event.listen(engine, "connect", _register_sqlite_functions)
    return engine


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def _register_sqlite_functions(dbapi_connection, connection_record):
    """Replace SQLite's ASCII-only LOWER() with a Unicode-aware one."""
    dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


def init_database(engine: Engine) -> None:
    """Create the companies and jobs tables if missing."""
    Base.metadata.create_all(engine)


def bind_positional(sql: str, values: Sequence[Any]):
    """
    Rewrite `$n` placeholders as named bind parameters.

    Returns:
        (TextClause, params dict) ready for `Connection.execute`
    """
    params = {f"p{idx}": value for idx, value in enumerate(values, start=1)}
    return text(_PLACEHOLDER.sub(r":p\1", sql)), params


class Database:
    """
    Query interface over a SQLAlchemy engine.

    Each call runs in its own transaction and commits on success.
    """

    def __init__(self, engine: Engine, logger: Optional[StructuredLogger] = None):
        self.engine = engine
        self.logger = logger or get_logger()

    @classmethod
    def from_url(cls, database_url: str, **kwargs) -> "Database":
        return cls(get_engine(database_url), **kwargs)

    def query(self, sql: str, values: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """
        Execute one statement and return its rows as dicts.

        Args:
            sql: Statement using $1, $2, ... placeholders
            values: Values for the placeholders, in order

        Returns:
            List of rows (empty if the statement returns none)
        """
        statement, params = bind_positional(sql, values)
        self.logger.debug("Executing query", sql=" ".join(sql.split()), params=len(params))
        self.logger.record_query()

        try:
            with self.engine.begin() as conn:
                result = conn.execute(statement, params)
                rows = [dict(row) for row in result.mappings()] if result.returns_rows else []
        except Exception as e:
            self.logger.record_query_failure(type(e).__name__)
            if isinstance(e, IntegrityError):
                # Constraint violations are usually handled by the caller
                self.logger.warning(f"Constraint violation: {e.orig}", error_type=type(e).__name__)
            else:
                self.logger.error(f"Query failed: {e}", error_type=type(e).__name__)
            raise

        return rows

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def dispose(self) -> None:
        self.engine.dispose()
