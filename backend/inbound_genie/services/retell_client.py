import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import env
from ..errors import ProviderError, ProviderNotConfigured


logger = logging.getLogger(__name__)


class RetellClient:
    def __init__(self) -> None:
        self.api_key = env("RETELL_API_KEY")
        self.base_url = "https://api.retellai.com"
        self.configured = bool(self.api_key)

        if self.configured:
            logger.info("RetellClient initialized with API key")
        else:
            logger.info("RetellClient initialized without RETELL_API_KEY")

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    @retry(
        wait=wait_exponential(min=1, max=10),
        stop=stop_after_attempt(3),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{self.base_url}{path}",
                headers=self._headers(),
                json=payload,
                timeout=30.0,
            )
        logger.info(f"Retell API {path} response: {response.status_code}")
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Retell API HTTP error: {e.response.status_code} - {e.response.text}")
            raise ProviderError(self._error_message(e.response)) from e
        return response.json()

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"Retell API error {response.status_code}"
        if isinstance(body, dict):
            return body.get("error_message") or body.get("message") or body.get("error") or str(body)
        return str(body)

    async def create_web_call(self, agent_id: str, dynamic_variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Create a browser (WebRTC) call for testing an agent and return Retell's call object."""
        if not self.configured:
            raise ProviderNotConfigured("Retell API key not configured")
        result = await self._post("/v2/create-web-call", {
            "agent_id": agent_id,
            "retell_llm_dynamic_variables": dynamic_variables or {},
        })
        logger.info(f"Web call created: call_id={result.get('call_id')} agent_id={result.get('agent_id')}")
        return result
