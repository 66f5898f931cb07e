"""Enrichment row schema: columns, scoring and validation rule tables.

Single source of truth for the spreadsheet layout and for which fields drive
completion, which are required, and which hold a fixed vocabulary.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple


@dataclass(frozen=True)
class ColumnDefinition:
    """Immutable column descriptor."""

    key: str
    header: str
    width: int = 100
    # Keyword groups for tolerant header matching; any group whose words all
    # appear in a header maps it to this column.
    keywords: Tuple[Tuple[str, ...], ...] = ()


COLUMNS: Tuple[ColumnDefinition, ...] = (
    ColumnDefinition("mp_service_name", "MP Service Name", 200, (("service", "name"), ("service", "mp"))),
    ColumnDefinition("mp_service_path", "MP Service Path", 150, (("service", "path"),)),
    ColumnDefinition("mp_cmdb_id", "MP CMDB ID", 120, (("cmdb",),)),
    ColumnDefinition("pd_tech_svc", "PD Tech SVC", 120, (("pd", "tech"),)),
    ColumnDefinition("prime_manager", "Prime Manager", 150, (("prime", "manager"),)),
    ColumnDefinition("prime_director", "Prime Director", 150, (("prime", "director"),)),
    ColumnDefinition("prime_vp", "Prime VP", 120, (("prime", "vp"),)),
    ColumnDefinition("mse", "MSE", 100, (("mse",),)),
    ColumnDefinition("dt_service_name", "DT Service Name", 150, (("dt", "service", "name"),)),
    ColumnDefinition("next_hop_process_group", "Next Hop Process Group", 180, (("next", "hop", "process"),)),
    ColumnDefinition("next_hop_endpoint", "Next Hop Endpoint", 170, (("next", "hop", "endpoint"),)),
    ColumnDefinition("analysis_status", "Analysis Status", 130, (("analysis", "status"),)),
    ColumnDefinition("next_hop_service_code", "Next Hop Service Code", 170, (("next", "hop", "service"),)),
    ColumnDefinition("pd_team_name", "PD Team Name", 120, (("pd", "team"),)),
    ColumnDefinition("integrated_with_pd", "Integrated with PD", 180, (("integrated", "pd"),)),
    ColumnDefinition("user_acknowledge", "User Acknowledge", 120, (("user", "acknowledge"),)),
    ColumnDefinition("dt_service_id", "DT Service ID", 120, (("dt", "service", "id"),)),
    ColumnDefinition("terraform_onboarding", "Terraform Onboarding", 150, (("terraform",),)),
    ColumnDefinition("team_name_does_not_exist", "Team Name Does Not Exist", 180, (("team", "not", "exist"),)),
    ColumnDefinition("tech_svc_does_not_exist", "Tech SVC Does Not Exist", 180, (("tech", "not", "exist"),)),
    ColumnDefinition("update_team_name", "Update Team Name", 150, (("update", "team"),)),
    ColumnDefinition("update_tech_svc", "Update Tech SVC", 150, (("update", "tech"),)),
)

FIELD_KEYS: Tuple[str, ...] = tuple(c.key for c in COLUMNS)

# Display name field; duplicated rows get a "(Copy)" marker here.
PRIMARY_NAME_FIELD = "mp_service_name"

# Fields whose population drives a row's completion percentage.
TRACKED_FIELDS: Tuple[str, ...] = ("mp_service_name", "mp_cmdb_id", "pd_tech_svc", "pd_team_name")

# Fields that must be non-empty for a row to pass validation.
REQUIRED_FIELDS: Dict[str, str] = {
    "mp_service_name": "service name",
}

YES_NO: FrozenSet[str] = frozenset({"yes", "no"})

# Status flag columns and their accepted values (compared case-insensitively;
# empty is always accepted).
ENUM_FIELDS: Dict[str, FrozenSet[str]] = {
    "integrated_with_pd": YES_NO,
    "user_acknowledge": YES_NO,
    "terraform_onboarding": YES_NO,
    "team_name_does_not_exist": YES_NO,
    "tech_svc_does_not_exist": YES_NO,
}

# Keyword fallbacks are tried in this order; more specific columns first so
# "Next Hop Service Code" does not match the generic service-name rule.
_FALLBACK_ORDER: Tuple[str, ...] = (
    "dt_service_name",
    "dt_service_id",
    "next_hop_process_group",
    "next_hop_endpoint",
    "next_hop_service_code",
    "team_name_does_not_exist",
    "tech_svc_does_not_exist",
    "update_team_name",
    "update_tech_svc",
    "mp_service_path",
    "mp_service_name",
    "mp_cmdb_id",
    "prime_manager",
    "prime_director",
    "prime_vp",
    "mse",
    "analysis_status",
    "pd_team_name",
    "integrated_with_pd",
    "user_acknowledge",
    "terraform_onboarding",
    "pd_tech_svc",
)

_COLUMNS_BY_KEY: Dict[str, ColumnDefinition] = {c.key: c for c in COLUMNS}
_NON_WORD = re.compile(r"[^a-z0-9_]")


def get_column(key: str) -> ColumnDefinition:
    if key not in _COLUMNS_BY_KEY:
        raise ValueError(f"Unknown field: {key!r}")
    return _COLUMNS_BY_KEY[key]


def is_field(key: str) -> bool:
    return key in _COLUMNS_BY_KEY


def match_header(header: str) -> Optional[str]:
    """Map one spreadsheet header to a field key, or None if unrecognized.

    Exact matches (field key or display header, case-insensitive) win;
    otherwise keyword groups are tried in ``_FALLBACK_ORDER``.
    """
    normalized = str(header).strip().lower()
    if not normalized:
        return None
    clean = _NON_WORD.sub("_", normalized)
    for column in COLUMNS:
        if normalized in (column.key, column.header.lower()) or clean == column.key:
            return column.key

    words = set(re.split(r"[^a-z0-9]+", normalized))
    for key in _FALLBACK_ORDER:
        for group in _COLUMNS_BY_KEY[key].keywords:
            if all(_has_word(normalized, words, kw) for kw in group):
                return key
    return None


def _has_word(normalized: str, words: set, keyword: str) -> bool:
    # Short tokens ("pd", "dt", "vp", "id") must be whole words to avoid
    # matching inside longer ones ("update", "identifier").
    if len(keyword) <= 3:
        return keyword in words
    return keyword in normalized


def map_headers(headers: List[str]) -> Dict[str, str]:
    """Return ``{header: field_key}`` for every recognized header.

    When two headers resolve to the same field the first one wins.
    """
    mapping: Dict[str, str] = {}
    claimed = set()
    for header in headers:
        if header is None:
            continue
        key = match_header(header)
        if key and key not in claimed:
            mapping[header] = key
            claimed.add(key)
    return mapping
