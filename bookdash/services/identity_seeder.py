"""Ensures the default roles and the SuperAdmin account exist."""

import logging

from bookdash.config import settings
from bookdash.repositories import RoleRepository, UserRepository
from bookdash.security import hash_password

logger = logging.getLogger(__name__)


class IdentitySeeder:
    def __init__(self, users: UserRepository = None, roles: RoleRepository = None) -> None:
        self.users = users or UserRepository()
        self.roles = roles or RoleRepository()

    def seed(self) -> None:
        for role_name in settings.default_roles:
            self.ensure_role(role_name)

        role = self.ensure_role(settings.superadmin_role)
        user = self.users.get_by_email(settings.superadmin_email)
        if user is None:
            username = settings.superadmin_email.split("@")[0] or "superadmin"
            user = self.users.create(
                username=username,
                email=settings.superadmin_email,
                password_hash=hash_password(settings.superadmin_password),
            )
            logger.info(f"Seeded SuperAdmin user {user.email}")

        if not self.users.is_in_role(user.id, role.id):
            self.users.add_to_role(user.id, role.id)
            logger.info(f"Seeded user {user.email} into role {role.name}")

    def ensure_role(self, role_name: str):
        role = self.roles.get_by_name(role_name)
        if role is None:
            role = self.roles.create(role_name)
            logger.info(f"Created role {role_name}")
        return role
