"""Protected-row guards (admin user, admin role).

Protection comes from configuration and the ``Role.is_system`` flag, never
from literal ids in service code.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import FrozenSet

from app.errors import ConflictError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProtectedRows:
    user_ids: FrozenSet[int] = frozenset()
    role_names: FrozenSet[str] = frozenset()

    @classmethod
    def from_config(cls, config) -> 'ProtectedRows':
        return cls(
            user_ids=frozenset(config.get('PROTECTED_USER_IDS') or ()),
            role_names=frozenset(config.get('PROTECTED_ROLE_NAMES') or ()),
        )

    def is_protected_user(self, user) -> bool:
        return user.id in self.user_ids

    def is_protected_role(self, role) -> bool:
        return bool(role.is_system) or role.name in self.role_names

    def assert_user_deletable(self, user):
        if self.is_protected_user(user):
            logger.info('refused delete of protected user %s', user.id)
            raise ConflictError('Cannot delete admin user')

    def assert_role_deletable(self, role):
        if self.is_protected_role(role):
            logger.info('refused delete of protected role %s (%s)', role.id, role.name)
            raise ConflictError('Cannot delete Admin role')

    def assert_role_renamable(self, role, new_name: str):
        if new_name != role.name and self.is_protected_role(role):
            logger.info('refused rename of protected role %s (%s)', role.id, role.name)
            raise ConflictError('Cannot rename protected role')


def protected_rows() -> ProtectedRows:
    from flask import current_app
    return ProtectedRows.from_config(current_app.config)

__all__ = ['ProtectedRows', 'protected_rows']
