"""
auth/store.py -- SQLAlchemy Core persistence layer for User records.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. The flow controller and routes never touch SQL directly.

Engines: the same queries run against MySQL (mysql+pymysql), PostgreSQL
(postgresql+psycopg2) or SQLite. Swapping engines is a URL change.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(username) and UNIQUE(email) are declared on the table. The flow
  controller's pre-insert conflict check gives friendly per-field errors,
  but only the constraint can stop two concurrent registrations; create_user()
  lets the IntegrityError propagate so the caller can translate it.

Connections:
  Every method scopes its connection with `with self.engine.connect()` (reads)
  or `with self.engine.begin()` (writes), so the pooled connection goes back
  to the pool on success and on every exception path.

Collation:
  Equality on username/email follows the storage collation. SQLite compares
  case-sensitively; MySQL's default utf8mb4 collations compare
  case-insensitively. conflicting_fields() evaluates its matches in SQL so
  it always agrees with the constraints. search_users() is case-insensitive
  on every engine.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Integer,
    MetaData,
    String,
    Table,
    case,
    create_engine,
    or_,
    select,
    text,
    true,
)
from sqlalchemy.engine import Engine

from auth.models import ROLE_USER, User

logger = logging.getLogger("labauth.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(100), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("full_name", String(255), nullable=False),
    Column("phone_number", String(30)),
    Column("role", String(20), nullable=False, server_default=ROLE_USER),
    Column("is_active", Boolean, nullable=False, server_default=true()),
    Column("created_at", String(32), nullable=False),
)

# Public-safe column set: everything except password_hash.
_PUBLIC_COLUMNS = [c for c in _users.c if c.name != "password_hash"]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore(settings.sqlalchemy_url, pool_size=settings.db_pool_size)
        user_id = store.create_user(User(username="ana", email="ana@lab.edu", ...))
        user = store.get_by_identifier("ana@lab.edu")
        store.close()
    """

    def __init__(self, db_url: str, pool_size: int = 10, echo: bool = False) -> None:
        engine_kwargs: dict = {"echo": echo}
        if db_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        else:
            engine_kwargs.update(pool_size=pool_size, max_overflow=0, pool_pre_ping=True)
        self.engine: Engine = create_engine(db_url, **engine_kwargs)
        self.create_schema()

    def create_schema(self) -> None:
        """Create the users table if it does not exist. Idempotent."""
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def conflicting_fields(self, username: str, email: str) -> set[str]:
        """Return which of {"username", "email"} already belong to some row.

        The per-column match flags are computed in SQL, so the comparison
        uses the same collation as the UNIQUE constraints. On a
        case-insensitive collation "Ana" and "ana" collide here exactly as
        they would on insert.
        """
        username_match = (_users.c.username == username).label("username_match")
        email_match = (_users.c.email == email).label("email_match")
        with self.engine.connect() as conn:
            rows = conn.execute(
                select(username_match, email_match).where(
                    or_(_users.c.username == username, _users.c.email == email)
                )
            ).fetchall()
        fields: set[str] = set()
        for row in rows:
            if row.username_match:
                fields.add("username")
            if row.email_match:
                fields.add("email")
        return fields

    def get_by_identifier(self, identifier: str) -> User | None:
        """Look up a user whose email or username equals identifier.

        If one account's username happens to equal another account's email,
        the email match wins, so a lookup never depends on row order.
        """
        email_first = case((_users.c.email == identifier, 0), else_=1)
        with self.engine.connect() as conn:
            row = conn.execute(
                _users.select()
                .where(or_(_users.c.email == identifier, _users.c.username == identifier))
                .order_by(email_first, _users.c.id)
                .limit(1)
            ).fetchone()
        return _row_to_user(row) if row is not None else None

    def search_users(self, search: str | None = None) -> list[User]:
        """Return users whose username or full_name contains search, any case.

        The returned User objects carry an empty password_hash: the hash
        column is never selected. LIKE wildcards in search match literally.
        An empty or missing search returns every user. No pagination.
        """
        stmt = select(*_PUBLIC_COLUMNS).order_by(_users.c.id)
        if search:
            stmt = stmt.where(
                or_(
                    _users.c.username.icontains(search, autoescape=True),
                    _users.c.full_name.icontains(search, autoescape=True),
                )
            )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_user(r) for r in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if username or email already
        exists. The transaction is rolled back before the error propagates.
        """
        with self.engine.begin() as conn:
            result = conn.execute(
                _users.insert().values(
                    username=user.username,
                    email=user.email,
                    password_hash=user.password_hash,
                    full_name=user.full_name,
                    phone_number=user.phone_number,
                    role=user.role,
                    is_active=user.is_active,
                    created_at=_now_iso(),
                )
            )
            return result.inserted_primary_key[0]

    def set_active(self, user_id: int, is_active: bool) -> bool:
        """Lock or unlock an account. Operator tooling only; not exposed over HTTP.

        Returns True if a row was updated, False if user_id was not found.
        """
        with self.engine.begin() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(is_active=is_active))
        return result.rowcount > 0

    def set_role(self, user_id: int, role: str) -> bool:
        """Change an account's role. Operator tooling only; not exposed over HTTP."""
        with self.engine.begin() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(role=role))
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the store answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            logger.exception("Credential store ping failed")
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    # Rows from search_users() have no password_hash column.
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        full_name=row.full_name,
        password_hash=getattr(row, "password_hash", "") or "",
        phone_number=row.phone_number,
        role=row.role,
        is_active=bool(row.is_active),
        created_at=row.created_at,
    )
