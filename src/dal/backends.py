"""Backend identifiers, lifecycle states and call verbs for the hybrid DAL."""

from enum import Enum


class Backend(str, Enum):
    """Relational engines the hybrid database can route to."""

    POSTGRES = "postgres"
    SQLITE = "sqlite"


DEFAULT_BACKEND = Backend.SQLITE


class BackendState(str, Enum):
    """Per-backend initialization lifecycle.

    ``uninitialized -> connecting -> schema_ready`` on success, or
    ``connecting -> unavailable`` (terminal) when the backend cannot be used.
    """

    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    SCHEMA_READY = "schema_ready"
    UNAVAILABLE = "unavailable"


class Verb(str, Enum):
    """Call shapes accepted by the hybrid database."""

    RUN = "run"
    GET = "get"
    ALL = "all"


# Case-insensitive spellings accepted wherever a backend is named.
BACKEND_ALIASES: dict[str, Backend] = {
    "postgres": Backend.POSTGRES,
    "postgresql": Backend.POSTGRES,
    "pg": Backend.POSTGRES,
    "sqlite": Backend.SQLITE,
    "sqlite3": Backend.SQLITE,
}


def normalize_backend_name(value: str) -> str:
    """Canonical backend id for an alias; unknown names come back lowercased."""
    cleaned = value.strip().lower()
    alias = BACKEND_ALIASES.get(cleaned)
    return alias.value if alias else cleaned


def coerce_backend(value) -> Backend:
    """Accept a Backend or one of its aliases."""
    if isinstance(value, Backend):
        return value
    normalized = normalize_backend_name(str(value))
    try:
        return Backend(normalized)
    except ValueError:
        allowed = ", ".join(b.value for b in Backend)
        raise ValueError(f"Unknown backend '{value}'. Allowed values: {allowed}")


def coerce_verb(value) -> Verb:
    """Accept a Verb or its string name."""
    if isinstance(value, Verb):
        return value
    try:
        return Verb(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"Unknown verb '{value}'. Expected one of: run, get, all")
