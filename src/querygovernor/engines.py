"""Database engine tags."""

from __future__ import annotations

from enum import Enum

_ALIASES = {
    "postgresql": "postgres",
    "pg": "postgres",
    "psql": "postgres",
    "mariadb": "mysql",
    "sqlite3": "sqlite",
}


class Engine(str, Enum):
    """
    Closed set of engines the governor knows about.

    Anything unrecognized is OTHER, which gets no estimates and no
    plan normalization but is otherwise passed through.
    """

    POSTGRES = "postgres"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    OTHER = "other"

    @classmethod
    def from_string(cls, value: str) -> "Engine":
        """Parse an engine tag, defaulting to OTHER."""
        key = str(value.value if isinstance(value, Engine) else value).strip().lower()
        try:
            return cls(_ALIASES.get(key, key))
        except ValueError:
            return cls.OTHER
