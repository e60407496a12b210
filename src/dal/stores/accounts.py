"""Account lookups across the admin, user and legacy users tables.

Passwords arrive already hashed; verification belongs to the auth layer.
"""

from typing import Any, Dict, Optional

from dal.hybrid import HybridDatabase
from dal.query_result import Row

ROLE_ADMIN = "admin"
ROLE_USER = "user"

_ADMIN_COLUMNS = "id, username, email, full_name, permissions, created_at"
_USER_COLUMNS = "id, username, email, full_name, department, access_level, created_at"
_LEGACY_COLUMNS = "id, username, email, role, created_at"


class AccountStore:
    """Create and resolve portal accounts."""

    def __init__(self, db: HybridDatabase):
        self.db = db

    async def create_admin(
        self,
        username: str,
        email: str,
        password_hash: str,
        full_name: Optional[str] = None,
        permissions: str = "all",
    ) -> Dict[str, Any]:
        result = await self.db.run(
            "INSERT INTO admin (username, email, password_hash, full_name, permissions) "
            "VALUES (?, ?, ?, ?, ?)",
            [username, email, password_hash, full_name, permissions],
            target="admin",
        )
        return {
            "id": result.id,
            "username": username,
            "email": email,
            "full_name": full_name,
            "permissions": permissions,
            "user_type": ROLE_ADMIN,
        }

    async def create_user(
        self,
        username: str,
        email: str,
        password_hash: str,
        full_name: Optional[str] = None,
        department: Optional[str] = None,
        access_level: str = "basic",
    ) -> Dict[str, Any]:
        """Create a department user account."""
        result = await self.db.run(
            'INSERT INTO "user" (username, email, password_hash, full_name, department, '
            "access_level) VALUES (?, ?, ?, ?, ?, ?)",
            [username, email, password_hash, full_name, department, access_level],
            target="user",
        )
        return {
            "id": result.id,
            "username": username,
            "email": email,
            "full_name": full_name,
            "department": department,
            "access_level": access_level,
            "user_type": ROLE_USER,
        }

    async def find_by_email(self, email: str, role: Optional[str] = None) -> Optional[Row]:
        """Return the account row for ``email``, including ``password_hash``.

        With ``role`` only that table is searched. Without it, ``admin`` wins
        over ``user``, which wins over the legacy ``users`` table.
        """
        if role == ROLE_ADMIN:
            return await self._find_admin(email)
        if role == ROLE_USER:
            return await self._find_user(email)
        if role is not None:
            raise ValueError(f"Unknown role '{role}'. Expected 'admin' or 'user'.")

        account = await self._find_admin(email) or await self._find_user(email)
        if account is not None:
            return account
        return await self.db.get(
            "SELECT *, role AS user_type FROM users WHERE email = ?", [email], target="users"
        )

    async def _find_admin(self, email: str) -> Optional[Row]:
        return await self.db.get(
            "SELECT *, 'admin' AS user_type FROM admin WHERE email = ?", [email], target="admin"
        )

    async def _find_user(self, email: str) -> Optional[Row]:
        return await self.db.get(
            """SELECT *, 'user' AS user_type FROM "user" WHERE email = ?""", [email], target="user"
        )

    async def get_by_id(self, account_id: int, user_type: Optional[str] = None) -> Optional[Row]:
        """Return an account without its password hash."""
        lookups = {
            ROLE_ADMIN: (
                f"SELECT {_ADMIN_COLUMNS}, 'admin' AS user_type FROM admin WHERE id = ?",
                "admin",
            ),
            ROLE_USER: (
                f"""SELECT {_USER_COLUMNS}, 'user' AS user_type FROM "user" WHERE id = ?""",
                "user",
            ),
        }
        if user_type is not None:
            if user_type not in lookups:
                raise ValueError(f"Unknown user type '{user_type}'. Expected 'admin' or 'user'.")
            sql, table = lookups[user_type]
            return await self.db.get(sql, [account_id], target=table)

        for sql, table in lookups.values():
            account = await self.db.get(sql, [account_id], target=table)
            if account is not None:
                return account
        return await self.db.get(
            f"SELECT {_LEGACY_COLUMNS}, role AS user_type FROM users WHERE id = ?",
            [account_id],
            target="users",
        )
