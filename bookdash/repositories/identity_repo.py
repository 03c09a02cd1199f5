"""
repositories/identity_repo.py
-----------------------------
Data access layer for users, roles, role membership and role claims.

Role names are matched through their upper-cased ``normalized_name`` so
lookups are case-insensitive.
"""

import logging
import sqlite3
import uuid
from typing import Dict, List, Optional

from bookdash.database import get_db_connection
from bookdash.errors import DuplicateEntryError
from bookdash.models import Role, RoleClaim, User, utc_now_iso

logger = logging.getLogger(__name__)


def normalize(value: str) -> str:
    return value.strip().upper()


class UserRepository:
    """Repository for the users and user_roles tables."""

    def get_by_id(self, user_id: str) -> Optional[User]:
        conn = get_db_connection()
        try:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            return self._with_roles(conn, User.from_row(row)) if row else None
        finally:
            conn.close()

    def get_by_username(self, username: str) -> Optional[User]:
        conn = get_db_connection()
        try:
            row = conn.execute("SELECT * FROM users WHERE username = ?", (username.strip(),)).fetchone()
            return self._with_roles(conn, User.from_row(row)) if row else None
        finally:
            conn.close()

    def get_by_email(self, email: str) -> Optional[User]:
        conn = get_db_connection()
        try:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email.strip(),)).fetchone()
            return self._with_roles(conn, User.from_row(row)) if row else None
        finally:
            conn.close()

    def find_by_login(self, login: str) -> Optional[User]:
        """Look a user up by user name first, then by email."""
        return self.get_by_username(login) or self.get_by_email(login)

    def get_all(self) -> List[User]:
        conn = get_db_connection()
        try:
            rows = conn.execute("SELECT * FROM users ORDER BY username COLLATE NOCASE").fetchall()
            users = [User.from_row(r) for r in rows]
            roles_by_user = self._roles_by_user(conn)
            for user in users:
                user.roles = roles_by_user.get(user.id, [])
            return users
        finally:
            conn.close()

    def create(
        self, username: str, email: Optional[str], password_hash: str, full_name: Optional[str] = None
    ) -> User:
        user = User(
            id=str(uuid.uuid4()),
            username=username.strip(),
            email=email.strip() if email else None,
            full_name=full_name,
            password_hash=password_hash,
            created_at=utc_now_iso(),
        )
        conn = get_db_connection()
        try:
            conn.execute(
                "INSERT INTO users (id, username, email, full_name, password_hash, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (user.id, user.username, user.email, user.full_name, user.password_hash, user.created_at),
            )
            conn.commit()
            logger.info(f"Created user {user.username} ({user.id})")
            return user
        except sqlite3.IntegrityError as e:
            logger.error(f"Failed to create user {username}: {e}")
            raise DuplicateEntryError(f"User '{username}' already exists.") from e
        finally:
            conn.close()

    def get_roles(self, user_id: str) -> List[str]:
        conn = get_db_connection()
        try:
            rows = conn.execute(
                "SELECT r.name FROM user_roles ur JOIN roles r ON r.id = ur.role_id "
                "WHERE ur.user_id = ? ORDER BY r.name",
                (user_id,),
            ).fetchall()
            return [r["name"] for r in rows]
        finally:
            conn.close()

    def is_in_role(self, user_id: str, role_id: str) -> bool:
        conn = get_db_connection()
        try:
            row = conn.execute(
                "SELECT 1 FROM user_roles WHERE user_id = ? AND role_id = ?", (user_id, role_id)
            ).fetchone()
            return row is not None
        finally:
            conn.close()

    def add_to_role(self, user_id: str, role_id: str) -> None:
        conn = get_db_connection()
        try:
            conn.execute("INSERT INTO user_roles (user_id, role_id) VALUES (?, ?)", (user_id, role_id))
            conn.commit()
            logger.info(f"Added user {user_id} to role {role_id}")
        except sqlite3.IntegrityError as e:
            raise DuplicateEntryError(f"User {user_id} is already in role {role_id}.") from e
        finally:
            conn.close()

    def remove_from_role(self, user_id: str, role_id: str) -> bool:
        conn = get_db_connection()
        try:
            cursor = conn.execute(
                "DELETE FROM user_roles WHERE user_id = ? AND role_id = ?", (user_id, role_id)
            )
            conn.commit()
            removed = cursor.rowcount > 0
            if removed:
                logger.info(f"Removed user {user_id} from role {role_id}")
            return removed
        finally:
            conn.close()

    def set_single_role(self, user_id: str, role_id: str) -> None:
        """Replace every role the user holds with the given one."""
        conn = get_db_connection()
        try:
            conn.execute("DELETE FROM user_roles WHERE user_id = ?", (user_id,))
            conn.execute("INSERT INTO user_roles (user_id, role_id) VALUES (?, ?)", (user_id, role_id))
            conn.commit()
            logger.info(f"Set role {role_id} as the only role of user {user_id}")
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            conn.close()

    @staticmethod
    def _with_roles(conn: sqlite3.Connection, user: User) -> User:
        rows = conn.execute(
            "SELECT r.name FROM user_roles ur JOIN roles r ON r.id = ur.role_id WHERE ur.user_id = ? ORDER BY r.name",
            (user.id,),
        ).fetchall()
        user.roles = [r["name"] for r in rows]
        return user

    @staticmethod
    def _roles_by_user(conn: sqlite3.Connection) -> Dict[str, List[str]]:
        rows = conn.execute(
            "SELECT ur.user_id, r.name FROM user_roles ur JOIN roles r ON r.id = ur.role_id ORDER BY r.name"
        ).fetchall()
        result: Dict[str, List[str]] = {}
        for row in rows:
            result.setdefault(row["user_id"], []).append(row["name"])
        return result


class RoleRepository:
    """Repository for the roles table."""

    def get_all(self) -> List[Role]:
        conn = get_db_connection()
        try:
            rows = conn.execute("SELECT * FROM roles ORDER BY name").fetchall()
            return [Role.from_row(r) for r in rows]
        finally:
            conn.close()

    def get_by_id(self, role_id: str) -> Optional[Role]:
        conn = get_db_connection()
        try:
            row = conn.execute("SELECT * FROM roles WHERE id = ?", (role_id,)).fetchone()
            return Role.from_row(row) if row else None
        finally:
            conn.close()

    def get_by_name(self, name: str) -> Optional[Role]:
        conn = get_db_connection()
        try:
            row = conn.execute("SELECT * FROM roles WHERE name = ?", (name.strip(),)).fetchone()
            if row is None:
                row = conn.execute(
                    "SELECT * FROM roles WHERE normalized_name = ?", (normalize(name),)
                ).fetchone()
            return Role.from_row(row) if row else None
        finally:
            conn.close()

    def resolve(self, role_id_or_name: str) -> Optional[Role]:
        """Find a role by id, then by name, then by normalized name."""
        return self.get_by_id(role_id_or_name) or self.get_by_name(role_id_or_name)

    def create(self, name: str) -> Role:
        role = Role(
            id=str(uuid.uuid4()),
            name=name.strip(),
            normalized_name=normalize(name),
            concurrency_stamp=str(uuid.uuid4()),
        )
        conn = get_db_connection()
        try:
            conn.execute(
                "INSERT INTO roles (id, name, normalized_name, concurrency_stamp) VALUES (?, ?, ?, ?)",
                (role.id, role.name, role.normalized_name, role.concurrency_stamp),
            )
            conn.commit()
            logger.info(f"Created role {role.name} ({role.id})")
            return role
        except sqlite3.IntegrityError as e:
            raise DuplicateEntryError(f"Role '{name}' already exists.") from e
        finally:
            conn.close()

    def update(self, role_id: str, name: str) -> Optional[Role]:
        conn = get_db_connection()
        try:
            cursor = conn.execute(
                "UPDATE roles SET name = ?, normalized_name = ?, concurrency_stamp = ? WHERE id = ?",
                (name.strip(), normalize(name), str(uuid.uuid4()), role_id),
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
            logger.info(f"Renamed role {role_id} to {name}")
        except sqlite3.IntegrityError as e:
            raise DuplicateEntryError(f"Role '{name}' already exists.") from e
        finally:
            conn.close()
        return self.get_by_id(role_id)

    def is_in_use(self, role_id: str) -> bool:
        conn = get_db_connection()
        try:
            return conn.execute("SELECT 1 FROM user_roles WHERE role_id = ? LIMIT 1", (role_id,)).fetchone() is not None
        finally:
            conn.close()

    def delete(self, role_id: str) -> bool:
        conn = get_db_connection()
        try:
            cursor = conn.execute("DELETE FROM roles WHERE id = ?", (role_id,))
            conn.commit()
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Deleted role {role_id}")
            return deleted
        finally:
            conn.close()


class RoleClaimRepository:
    """Repository for the role_claims table."""

    def get_by_role(self, role_id: str) -> List[RoleClaim]:
        conn = get_db_connection()
        try:
            rows = conn.execute(
                "SELECT * FROM role_claims WHERE role_id = ? ORDER BY claim_type, claim_value", (role_id,)
            ).fetchall()
            return [RoleClaim.from_row(r) for r in rows]
        finally:
            conn.close()

    def create(self, role_id: str, claim_type: str, claim_value: str) -> RoleClaim:
        conn = get_db_connection()
        try:
            cursor = conn.execute(
                "INSERT INTO role_claims (role_id, claim_type, claim_value) VALUES (?, ?, ?)",
                (role_id, claim_type.strip(), claim_value.strip()),
            )
            conn.commit()
            logger.info(f"Added claim {claim_type}={claim_value} to role {role_id}")
            return RoleClaim(
                id=cursor.lastrowid, role_id=role_id, claim_type=claim_type.strip(), claim_value=claim_value.strip()
            )
        finally:
            conn.close()

    def delete(self, claim_id: int) -> bool:
        conn = get_db_connection()
        try:
            cursor = conn.execute("DELETE FROM role_claims WHERE id = ?", (claim_id,))
            conn.commit()
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Deleted role claim {claim_id}")
            return deleted
        finally:
            conn.close()
