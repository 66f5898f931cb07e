"""Pydantic models for directory entities and enrichment rows.

Directory models mirror the PagerDuty REST v2 payloads closely enough for
typed access; unknown keys are ignored so API additions never break parsing.
"""

from __future__ import annotations

from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


# ── Directory entities ───────────────────────────────────────────

class DirectoryEntity(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    type: str = ""
    summary: str = ""
    self_url: str = Field(default="", alias="self")
    html_url: str = ""


class TeamReference(DirectoryEntity):
    pass


class Team(DirectoryEntity):
    name: str = ""
    description: Optional[str] = None


class User(DirectoryEntity):
    name: str = ""
    email: str = ""
    role: str = ""
    teams: List[TeamReference] = Field(default_factory=list)


class Service(DirectoryEntity):
    name: str = ""
    status: str = ""
    description: Optional[str] = None
    teams: List[TeamReference] = Field(default_factory=list)
    escalation_policy: Optional[Dict[str, Any]] = None


# ── Pagination ───────────────────────────────────────────────────

class DirectoryPage(BaseModel, Generic[T]):
    """One bounded chunk of a list endpoint.

    ``more`` is False exactly on the last page.
    """

    items: List[T] = Field(default_factory=list)
    more: bool = False
    offset: int = 0
    limit: int = 0
    total: Optional[int] = None


# ── Enrichment dataset ───────────────────────────────────────────

class EnrichmentRow(BaseModel):
    """One onboarding record. Frozen: mutate through ``model_copy(update=...)``."""

    model_config = ConfigDict(frozen=True)

    id: str
    mp_service_name: str = ""
    mp_service_path: str = ""
    mp_cmdb_id: str = ""
    pd_tech_svc: str = ""
    prime_manager: str = ""
    prime_director: str = ""
    prime_vp: str = ""
    mse: str = ""
    dt_service_name: str = ""
    next_hop_process_group: str = ""
    next_hop_endpoint: str = ""
    analysis_status: str = ""
    next_hop_service_code: str = ""
    pd_team_name: str = ""
    integrated_with_pd: str = ""
    user_acknowledge: str = ""
    dt_service_id: str = ""
    terraform_onboarding: str = ""
    team_name_does_not_exist: str = ""
    tech_svc_does_not_exist: str = ""
    update_team_name: str = ""
    update_tech_svc: str = ""
    completion: int = Field(default=0, ge=0, le=100)
    last_updated: str = ""


class OverallProgress(BaseModel):
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    not_started: int = 0
    average_completion: int = 0
