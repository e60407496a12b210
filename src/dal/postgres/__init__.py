"""PostgreSQL backend for the hybrid DAL.

The asyncpg-backed executor lives in ``dal.postgres.executor``.
"""

from .param_translation import count_qmark_placeholders, translate_qmark_params_to_postgres

__all__ = [
    "count_qmark_placeholders",
    "translate_qmark_params_to_postgres",
]
