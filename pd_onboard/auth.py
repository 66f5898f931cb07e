"""API token handling for the PagerDuty directory client."""

from __future__ import annotations

import os
from typing import Dict, Optional

TOKEN_ENV_VAR = "PAGERDUTY_API_TOKEN"


def resolve_api_token(api_token: Optional[str] = None, env_var: str = TOKEN_ENV_VAR) -> Optional[str]:
    """Precedence: explicit api_token > environment variable."""
    return api_token or os.environ.get(env_var) or None


def build_auth_headers(api_token: Optional[str] = None) -> Dict[str, str]:
    """Return the PagerDuty Authorization header if a token is available.

    Returns empty dict if no token is configured.
    """
    token = resolve_api_token(api_token)
    if token:
        return {"Authorization": f"Token token={token}"}
    return {}
