"""User role hierarchy shared by route dependencies, page guards and login."""

import enum
from types import MappingProxyType
from typing import List, Mapping, Optional, Union


class TipoUsuario(str, enum.Enum):
    Aluno = "Aluno"
    Professor = "Professor"
    Coordenador = "Coordenador"
    Admin = "Admin"


USER_HIERARCHY: Mapping[TipoUsuario, int] = MappingProxyType({
    TipoUsuario.Aluno: 1,
    TipoUsuario.Professor: 2,
    TipoUsuario.Coordenador: 3,
    TipoUsuario.Admin: 4,
})

RoleLike = Union[TipoUsuario, str]


def to_role(role: Optional[RoleLike]) -> Optional[TipoUsuario]:
    """Return the enum member for ``role``, or None if it is not a known role."""
    if isinstance(role, TipoUsuario):
        return role
    try:
        return TipoUsuario(role)
    except ValueError:
        return None


def rank(role: RoleLike) -> int:
    """Numeric rank of a role. Raises ValueError for unknown roles."""
    tipo = to_role(role)
    if tipo is None:
        raise ValueError(f"Unknown role: {role!r}")
    return USER_HIERARCHY[tipo]


def has_permission(held: Optional[RoleLike], required: RoleLike) -> bool:
    """True when ``held`` ranks at or above ``required``.

    A missing or unknown ``held`` role never has permission. An unknown
    ``required`` role is a programming error and raises ValueError.
    """
    needed = rank(required)
    tipo = to_role(held)
    if tipo is None:
        return False
    return USER_HIERARCHY[tipo] >= needed


def accessible_levels(held: Optional[RoleLike]) -> List[TipoUsuario]:
    """All roles ranked at or below ``held``, lowest first."""
    tipo = to_role(held)
    if tipo is None:
        return []
    level = USER_HIERARCHY[tipo]
    return sorted(
        (r for r, lvl in USER_HIERARCHY.items() if lvl <= level),
        key=USER_HIERARCHY.__getitem__,
    )


def is_exactly(held: Optional[RoleLike], role: RoleLike) -> bool:
    return to_role(held) is not None and to_role(held) == to_role(role)
