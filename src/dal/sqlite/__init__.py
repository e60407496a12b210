"""SQLite backend for the hybrid DAL.

The aiosqlite-backed executor lives in ``dal.sqlite.executor``.
"""
