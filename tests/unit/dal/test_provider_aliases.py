"""Unit tests for backend alias normalization."""

import pytest

from dal.backends import (
    BACKEND_ALIASES,
    Backend,
    Verb,
    coerce_backend,
    coerce_verb,
    normalize_backend_name,
)


class TestBackendAliases:
    """Validate backend alias normalization."""

    def test_all_aliases_resolve_to_canonical(self) -> None:
        """Every alias should resolve to a known backend."""
        for alias, backend in BACKEND_ALIASES.items():
            assert normalize_backend_name(alias) == backend.value
            assert coerce_backend(alias.upper()) is backend

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("PostgreSQL", Backend.POSTGRES),
            (" pg ", Backend.POSTGRES),
            ("SQLite3", Backend.SQLITE),
            (Backend.SQLITE, Backend.SQLITE),
        ],
    )
    def test_coerce_backend(self, raw, expected) -> None:
        assert coerce_backend(raw) is expected

    def test_unknown_values_pass_through_normalization(self) -> None:
        assert normalize_backend_name(" MySQL ") == "mysql"
        with pytest.raises(ValueError, match="Allowed values: postgres, sqlite"):
            coerce_backend("mysql")

    def test_coerce_verb(self) -> None:
        assert coerce_verb(" ALL ") is Verb.ALL
        assert coerce_verb(Verb.RUN) is Verb.RUN
        with pytest.raises(ValueError):
            coerce_verb("execute")
