"""Static table-to-backend ownership map."""

from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from dal.backends import DEFAULT_BACKEND, Backend

POSTGRES_TABLES = ("admin", "user", "atr_documents", "inferred_reports", "uploaded_atr")
SQLITE_TABLES = ("reports", "violations", "features", "sites", "videos_links", "users")

DEFAULT_OWNERSHIP: Mapping[str, Backend] = MappingProxyType(
    {
        **{table: Backend.POSTGRES for table in POSTGRES_TABLES},
        **{table: Backend.SQLITE for table in SQLITE_TABLES},
    }
)


def normalize_table_name(name: str) -> str:
    """Strip quoting, schema qualification and case from a table reference."""
    cleaned = name.strip().strip(";")
    for quote in ('"', "`", "[", "]"):
        cleaned = cleaned.replace(quote, "")
    if "." in cleaned:
        cleaned = cleaned.rsplit(".", 1)[1]
    return cleaned.lower()


class TableOwnershipMap:
    """Immutable mapping from table name to the backend that owns it."""

    def __init__(
        self,
        owners: Optional[Mapping[str, Backend]] = None,
        default_backend: Backend = DEFAULT_BACKEND,
    ) -> None:
        source = DEFAULT_OWNERSHIP if owners is None else owners
        self._owners = {normalize_table_name(name): Backend(b) for name, b in source.items()}
        self.default_backend = default_backend

    def __contains__(self, table: object) -> bool:
        return isinstance(table, str) and normalize_table_name(table) in self._owners

    def __len__(self) -> int:
        return len(self._owners)

    def owner(self, table: Optional[str]) -> Optional[Backend]:
        """Return the mapped backend, or None for unknown tables."""
        if not table:
            return None
        return self._owners.get(normalize_table_name(table))

    def tables_for(self, backend: Backend) -> list[str]:
        """List tables mapped to ``backend``, in declaration order."""
        return [name for name, owner in self._owners.items() if owner is backend]

    def items(self) -> Iterable[tuple[str, Backend]]:
        return self._owners.items()
