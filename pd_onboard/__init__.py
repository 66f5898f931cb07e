"""pd-onboard: PagerDuty directory aggregation and onboarding dataset tracking."""

__version__ = "0.3.0"

from pd_onboard.aggregator import PAGE_SIZE, DirectoryAggregator, fetch_all
from pd_onboard.async_client import AsyncPagerDutyClient
from pd_onboard.client import PagerDutyClient
from pd_onboard.dataset import (
    TabularDataset,
    calculate_row_completion,
    get_overall_progress,
    open_dataset,
    validate_excel_data,
)
from pd_onboard.errors import (
    AuthError,
    CodecError,
    ConfigError,
    FetchError,
    ForbiddenError,
    LoadError,
    NotFoundError,
    OnboardError,
    RateLimitError,
    SaveError,
    ServerError,
)
from pd_onboard.models import DirectoryPage, EnrichmentRow, OverallProgress, Service, Team, User

__all__ = [
    "PAGE_SIZE",
    "DirectoryAggregator",
    "fetch_all",
    "PagerDutyClient",
    "AsyncPagerDutyClient",
    "TabularDataset",
    "calculate_row_completion",
    "get_overall_progress",
    "open_dataset",
    "validate_excel_data",
    "DirectoryPage",
    "EnrichmentRow",
    "OverallProgress",
    "User",
    "Team",
    "Service",
    "OnboardError",
    "FetchError",
    "AuthError",
    "ForbiddenError",
    "NotFoundError",
    "RateLimitError",
    "ServerError",
    "CodecError",
    "LoadError",
    "SaveError",
    "ConfigError",
]
