"""
Role and permission model for the panel.

Roles are coarse (admin, editor, viewer) and permissions are a flat list of
capability strings granted per user, independent of the role. Both are closed
enumerations; anything outside them is dropped at the edges.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union


class Permission(str, Enum):
    """Fine-grained capabilities granted to a user"""
    UPLOAD = "upload"
    DELETE = "delete"
    VIEW = "visualizar"
    SHARE = "compartilhar"


class Role(str, Enum):
    """Coarse account roles"""
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INVITED = "invited"
    BLOCKED = "blocked"


AVAILABLE_PERMISSIONS: List[str] = [p.value for p in Permission]
AVAILABLE_ROLES: List[str] = [r.value for r in Role]
AVAILABLE_STATUSES: List[str] = [s.value for s in UserStatus]

GATE_MODES = ("all", "any")

PermissionInput = Union[None, str, Iterable[Any]]


@dataclass
class GateResult:
    """Outcome of a permission evaluation"""
    allowed: bool
    missing: List[str] = field(default_factory=list)


def _split(values: PermissionInput) -> List[str]:
    """Accept a list or a comma-separated string"""
    if values is None:
        return []
    if isinstance(values, str):
        values = values.split(",")
    return [str(value).strip() for value in values if str(value).strip()]


def normalize_permissions(values: PermissionInput) -> List[str]:
    """
    Keep only known permissions, de-duplicated and sorted.

    Args:
        values: List of strings or comma-separated string

    Returns:
        Sorted list of valid permission strings
    """
    return sorted({value for value in _split(values) if value in AVAILABLE_PERMISSIONS})


def is_valid_role(role: Optional[str]) -> bool:
    return role in AVAILABLE_ROLES


def evaluate(
    granted: PermissionInput,
    required: PermissionInput,
    mode: str = "all",
) -> GateResult:
    """
    Evaluate required permissions against the ones a session holds.

    Args:
        granted: Permissions held by the session
        required: Permissions the action needs
        mode: "all" (every required permission) or "any" (at least one)

    Returns:
        GateResult with ``allowed`` and the ``missing`` permissions
    """
    if mode not in GATE_MODES:
        raise ValueError(f"Invalid gate mode: {mode}. Valid values: {list(GATE_MODES)}")

    required_list = list(dict.fromkeys(_split(required)))
    if not required_list:
        return GateResult(allowed=True, missing=[])

    granted_set = set(_split(granted))
    missing = [permission for permission in required_list if permission not in granted_set]

    if mode == "any":
        allowed = len(missing) < len(required_list)
        return GateResult(allowed=allowed, missing=[] if allowed else missing)

    return GateResult(allowed=not missing, missing=missing)


# Gated actions exposed to the UI. Each entry names the roles that may run it
# (None = any role) and the permissions it needs.
ACTIONS: Dict[str, Dict[str, Any]] = {
    "upload": {
        "roles": [Role.ADMIN.value, Role.EDITOR.value],
        "permissions": [Permission.UPLOAD.value],
        "label": "enviar arquivos",
    },
    "delete": {
        "roles": None,
        "permissions": [Permission.DELETE.value],
        "label": "remover arquivos",
    },
    "share": {
        "roles": None,
        "permissions": [Permission.SHARE.value],
        "label": "compartilhar links",
    },
    "create_folder": {
        "roles": [Role.ADMIN.value, Role.EDITOR.value],
        "permissions": [],
        "label": "criar pastas",
    },
    "manage_users": {
        "roles": [Role.ADMIN.value],
        "permissions": [],
        "label": "gerenciar usuários",
    },
    "view_activity": {
        "roles": [Role.ADMIN.value],
        "permissions": [],
        "label": "visualizar atividades",
    },
    "manage_settings": {
        "roles": [Role.ADMIN.value],
        "permissions": [],
        "label": "alterar configurações",
    },
}


def describe_capabilities(role: Optional[str], permissions: PermissionInput) -> Dict[str, Dict[str, Any]]:
    """
    Describe every gated action for a session.

    Restricted actions are returned with ``allowed=False`` and a reason so
    clients can render them disabled instead of hiding them.
    """
    capabilities: Dict[str, Dict[str, Any]] = {}

    for action, rule in ACTIONS.items():
        result = evaluate(permissions, rule["permissions"], "all")
        role_ok = rule["roles"] is None or role in rule["roles"]
        allowed = role_ok and result.allowed

        reason = None
        if not role_ok:
            reason = f"Seu perfil não permite {rule['label']}."
        elif not result.allowed:
            reason = (
                f"Requer a permissão {', '.join(result.missing)} para {rule['label']}."
            )

        capabilities[action] = {
            "allowed": allowed,
            "missing": result.missing,
            "reason": reason,
        }

    return capabilities
