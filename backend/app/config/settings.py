"""Environment-driven settings merged into ``app.config`` by ``create_app``."""
from __future__ import annotations
import os
from typing import Any, Dict, FrozenSet

DEFAULTS: Dict[str, str] = {
    'DATABASE_URL': 'sqlite:///dev.db',
    'JWT_SECRET_KEY': 'dev-secret',
    'LOG_LEVEL': 'INFO',
    'PROTECTED_USER_IDS': '1',
    'PROTECTED_ROLE_NAMES': 'Admin',
}


def split_csv(raw) -> list:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple, set, frozenset)):
        return [str(v).strip() for v in raw if str(v).strip()]
    return [part.strip() for part in str(raw).split(',') if part.strip()]


def parse_id_set(raw) -> FrozenSet[int]:
    ids = set()
    for part in split_csv(raw):
        try:
            ids.add(int(part))
        except ValueError:
            raise ValueError(f'invalid id in protected list: {part!r}')
    return frozenset(ids)


def load_settings() -> Dict[str, Any]:
    settings: Dict[str, Any] = {key: os.getenv(key, default) for key, default in DEFAULTS.items()}
    settings['PROTECTED_USER_IDS'] = parse_id_set(settings['PROTECTED_USER_IDS'])
    settings['PROTECTED_ROLE_NAMES'] = frozenset(split_csv(settings['PROTECTED_ROLE_NAMES']))
    return settings

__all__ = ['DEFAULTS', 'load_settings', 'parse_id_set', 'split_csv']
