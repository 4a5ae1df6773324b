"""Role label normalization.

User roles are entered as free text by a bilingual (English/Russian) user
base, so the same role shows up as "Manager", "менеджер" or "menedzher".
"""

import re
from enum import Enum
from typing import Optional


class CanonicalRole(str, Enum):
    """Canonical role enumeration."""

    STOREKEEPER = "storekeeper"
    HEAD = "head"
    MANAGER = "manager"
    UNKNOWN = "unknown"


_ROLE_ALIASES: dict[CanonicalRole, tuple[str, ...]] = {
    CanonicalRole.STOREKEEPER: (
        "storekeeper",
        "store keeper",
        "warehouse keeper",
        "кладовщик",
        "кладовщица",
        "kladovshchik",
        "kladovshik",
        "kladovschik",
        "kladovshchitsa",
    ),
    CanonicalRole.HEAD: (
        "head",
        "head storekeeper",
        "senior storekeeper",
        "старший",
        "старший кладовщик",
        "начальник склада",
        "starshiy",
        "starshii",
        "starshij",
        "starshiy kladovshchik",
        "nachalnik sklada",
    ),
    CanonicalRole.MANAGER: (
        "manager",
        "менеджер",
        "menedzher",
        "menedzer",
        "menedjer",
    ),
}

_LOOKUP: dict[str, CanonicalRole] = {
    alias: role for role, aliases in _ROLE_ALIASES.items() for alias in aliases
}

_SEPARATORS = re.compile(r"[\s_\-]+")


def _canonical_text(raw: str) -> str:
    text = raw.strip().casefold().replace("ё", "е")
    return _SEPARATORS.sub(" ", text).strip()


def normalize_role(raw: Optional[str]) -> CanonicalRole:
    """
    Map a free-text role label to a CanonicalRole.

    Matching is case-insensitive and ignores surrounding whitespace;
    unrecognized or missing input maps to UNKNOWN.
    """
    if not isinstance(raw, str):
        return CanonicalRole.UNKNOWN
    return _LOOKUP.get(_canonical_text(raw), CanonicalRole.UNKNOWN)
