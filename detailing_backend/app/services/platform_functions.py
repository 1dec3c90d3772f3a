"""
Client for the data platform's serverless functions.

The payment processor integration (subscriptions, Connect onboarding,
transfers) runs as platform functions; this module only invokes them.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from detailing_backend.app.core.config import settings
from detailing_backend.app.core.exceptions import ConfigurationError, UpstreamServiceError

logger = logging.getLogger(__name__)

FUNCTIONS_PATH = "/functions/v1"


def _function_url(name: str) -> str:
    if not settings.platform_url:
        raise ConfigurationError("platform URL")
    return f"{settings.platform_url.rstrip('/')}{FUNCTIONS_PATH}/{name}"


def _headers(request_id: Optional[str]) -> Dict[str, str]:
    if not settings.platform_service_role_key:
        raise ConfigurationError("platform service role key")
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {settings.platform_service_role_key}",
    }
    if request_id:
        headers["X-Request-Id"] = request_id
    return headers


async def invoke_function(
    name: str,
    payload: Dict[str, Any],
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    POST a JSON payload to a platform function and return its JSON body.

    Raises:
        ConfigurationError: platform URL or service key not configured
        UpstreamServiceError: timeout, transport error or non-2xx response
    """
    url = _function_url(name)
    headers = _headers(request_id)

    try:
        async with httpx.AsyncClient(timeout=settings.platform_function_timeout_seconds) as client:
            resp = await client.post(url, json=payload, headers=headers)
            resp.raise_for_status()
            if resp.content:
                return resp.json()
            return {}
    except httpx.TimeoutException:
        logger.error("Timeout calling platform function %s", name)
        raise UpstreamServiceError(f"Timeout calling {name}", details={"function": name})
    except httpx.HTTPStatusError as e:
        detail = e.response.text
        logger.error("Platform function %s returned %s: %s", name, e.response.status_code, detail)
        raise UpstreamServiceError(
            f"Function {name} failed",
            details={"function": name, "status": e.response.status_code, "error": detail},
        )
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Platform function %s unreachable: %s", name, e)
        raise UpstreamServiceError(f"Function {name} unreachable", details={"function": name, "error": str(e)})
