"""
HTTP narrative provider: posts the enrichment request to a remote insight service.
"""
import logging
import os
from typing import Any, Dict, Optional

from storage.retry import DEFAULT_TIMEOUT, perform_request_with_retries

from .adapter import EnrichmentError

log = logging.getLogger(__name__)

ENV_URL = 'ENGAGE_INSIGHTS_URL'
ENV_TOKEN = 'ENGAGE_INSIGHTS_TOKEN'


class HttpInsightProvider:
    def __init__(self, url: str, token: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT, max_retries: Optional[int] = None):
        if not url:
            raise EnrichmentError("insight service URL is required")
        self.url = url
        self.token = token
        self.timeout = float(timeout)
        self.max_retries = max_retries

    @classmethod
    def from_env(cls, url: Optional[str] = None, token: Optional[str] = None, **kwargs) -> Optional['HttpInsightProvider']:
        """Build a provider from explicit values or ENGAGE_INSIGHTS_URL/ENGAGE_INSIGHTS_TOKEN; None when no URL is known."""
        url = url or os.getenv(ENV_URL)
        if not url:
            return None
        return cls(url, token or os.getenv(ENV_TOKEN), **kwargs)

    def _headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json', 'Accept': 'application/json'}
        if self.token:
            headers['Authorization'] = f"Bearer {self.token}"
        return headers

    def generate(self, request: Dict[str, Any]) -> Dict[str, Any]:
        result = perform_request_with_retries(
            self.url, method='POST', headers=self._headers(), json_body=request,
            timeout=self.timeout, max_retries=self.max_retries,
        )
        status = result.get('status', 0)
        if status != 200:
            raise EnrichmentError(f"insight service returned status {status}: {result.get('response')}")
        body = result.get('response')
        if not isinstance(body, dict):
            raise EnrichmentError("insight service returned a non-JSON-object body")
        log.debug("Received insights from %s", self.url)
        return body
