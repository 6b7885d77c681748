"""Central enum-like definitions to avoid typos in permission/service strings.
Extend cautiously; never rename codes silently, add new ones and migrate users if needed.
"""
from __future__ import annotations
from typing import List, Dict

SERVICES = ['HUB', 'ADMIN']

SERVICE_ACTIONS = {
    'HUB': ['PROJECT.READ', 'PROJECT.MANAGE', 'SPEC.READ', 'SPEC.MANAGE', 'VERSION.READ', 'VERSION.MANAGE'],
    'ADMIN': ['AUDIT.READ'],
}


def build_all_permission_codes() -> List[str]:
    codes: List[str] = []
    for svc, actions in SERVICE_ACTIONS.items():
        for act in actions:
            codes.append(f"{svc}.{act}")
    return codes

ALL_PERMISSION_CODES = build_all_permission_codes()

ROLE_VIEWER = 'Viewer'
ROLE_EDITOR = 'Editor'
ROLE_ADMIN = 'Admin'

ROLE_PRESETS: Dict[str, List[str]] = {
    ROLE_VIEWER: ['HUB.PROJECT.READ', 'HUB.SPEC.READ', 'HUB.VERSION.READ'],
    ROLE_EDITOR: [
        'HUB.PROJECT.READ', 'HUB.PROJECT.MANAGE',
        'HUB.SPEC.READ', 'HUB.SPEC.MANAGE',
        'HUB.VERSION.READ', 'HUB.VERSION.MANAGE',
    ],
    ROLE_ADMIN: ['*'],
}


def expand_role(role: str) -> List[str]:
    """Return the sorted permission codes of a preset role ('*' expands to all)."""
    codes = ROLE_PRESETS.get(role, [])
    if '*' in codes:
        return sorted(ALL_PERMISSION_CODES)
    return sorted(codes)
