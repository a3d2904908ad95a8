"""HTTP client for the Tuteliq content-safety API.

Blocking ``requests`` calls with retry/backoff, exposed to the async tool
handlers through ``asyncio.to_thread``.
"""

import asyncio
import logging
from typing import Any

import requests

from tuteliq_mcp.constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_API_TIMEOUT_SECONDS,
    SERVER_NAME,
    SERVER_VERSION,
)
from tuteliq_mcp.errors import TuteliqAPIError
from tuteliq_mcp.retry import RetryableStatus, retry_with_backoff

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

# Harm-detection endpoints sharing the content/context/evidence request shape
HARM_ENDPOINTS: dict[str, str] = {
    "social_engineering": "/fraud/social-engineering",
    "app_fraud": "/fraud/app-fraud",
    "romance_scam": "/fraud/romance-scam",
    "mule_recruitment": "/fraud/mule-recruitment",
    "gambling_harm": "/safety/gambling-harm",
    "coercive_control": "/safety/coercive-control",
    "vulnerability_exploitation": "/safety/vulnerability-exploitation",
    "radicalisation": "/safety/radicalisation",
}


def _compact(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            value = body.get(key)
            if isinstance(value, dict):
                value = value.get("message")
            if isinstance(value, str) and value:
                return value
    return f"Tuteliq API returned HTTP {response.status_code}"


class TuteliqClient:
    """
    Client for the Tuteliq REST API.

    Every public coroutine maps to one endpoint and returns the decoded JSON
    body. Failures raise ``TuteliqAPIError``.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = DEFAULT_API_TIMEOUT_SECONDS,
        max_attempts: int = 3,
        http: requests.Session | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("A Tuteliq API key is required.")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max_attempts
        self._http = http or requests.Session()
        self._http.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
                "User-Agent": f"{SERVER_NAME}/{SERVER_VERSION}",
            }
        )

    def close(self) -> None:
        self._http.close()

    def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
    ) -> Any:
        """Send one API request, retrying transient failures.

        Connection errors, timeouts, 429 and 5xx responses are retried with
        exponential backoff. Other non-2xx responses fail immediately.
        """
        url = f"{self.base_url}{API_PREFIX}{path}"

        def _send() -> requests.Response:
            try:
                response = self._http.request(
                    method, url, json=json, data=data, files=files, timeout=self.timeout
                )
            except requests.Timeout as e:
                raise TimeoutError(str(e)) from e
            except requests.ConnectionError as e:
                raise ConnectionError(str(e)) from e
            if response.status_code == 429 or response.status_code >= 500:
                raise RetryableStatus(response.status_code, _error_message(response))
            return response

        try:
            response = retry_with_backoff(_send, max_attempts=self.max_attempts)
        except RetryableStatus as e:
            raise TuteliqAPIError(str(e), status_code=e.status_code) from e
        except (ConnectionError, TimeoutError) as e:
            raise TuteliqAPIError(f"Tuteliq API request failed: {e}") from e
        except requests.RequestException as e:
            raise TuteliqAPIError(f"Tuteliq API request failed: {e}") from e

        if not response.ok:
            logger.debug("Tuteliq API %s %s -> %s", method, path, response.status_code)
            raise TuteliqAPIError(_error_message(response), status_code=response.status_code)
        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise TuteliqAPIError("Tuteliq API returned invalid JSON") from e

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        return await asyncio.to_thread(self.request, method, path, **kwargs)

    async def _post(self, path: str, payload: dict[str, Any]) -> Any:
        return await self._call("POST", path, json=_compact(payload))

    # Safety detection

    async def detect_bullying(self, content: str, context: dict[str, Any] | None = None) -> Any:
        return await self._post("/safety/bullying", {"content": content, "context": context})

    async def detect_grooming(
        self, messages: list[dict[str, Any]], child_age: int | None = None
    ) -> Any:
        return await self._post("/safety/grooming", {"messages": messages, "child_age": child_age})

    async def detect_unsafe(self, content: str, context: dict[str, Any] | None = None) -> Any:
        return await self._post("/safety/unsafe", {"content": content, "context": context})

    async def analyze(self, content: str, include: list[str] | None = None) -> Any:
        return await self._post("/analyze", {"content": content, "include": include})

    # Analysis and guidance

    async def analyze_emotions(self, content: str) -> Any:
        return await self._post("/analysis/emotions", {"content": content})

    async def get_action_plan(
        self,
        situation: str,
        child_age: int | None = None,
        audience: str | None = None,
        severity: str | None = None,
    ) -> Any:
        return await self._post(
            "/guidance/action-plan",
            {
                "situation": situation,
                "child_age": child_age,
                "audience": audience,
                "severity": severity,
            },
        )

    async def generate_report(
        self,
        messages: list[dict[str, Any]],
        child_age: int | None = None,
        incident_type: str | None = None,
    ) -> Any:
        incident = {"type": incident_type} if incident_type else None
        return await self._post(
            "/reports/incident",
            {"messages": messages, "child_age": child_age, "incident": incident},
        )

    async def analyse_multi(
        self,
        content: str,
        detections: list[str],
        context: dict[str, Any] | None = None,
        include_evidence: bool | None = None,
        external_id: str | None = None,
        customer_id: str | None = None,
    ) -> Any:
        return await self._post(
            "/analyse/multi",
            {
                "content": content,
                "detections": detections,
                "context": context,
                "include_evidence": include_evidence,
                "external_id": external_id,
                "customer_id": customer_id,
            },
        )

    async def detect_harm(
        self,
        endpoint: str,
        content: str,
        context: dict[str, Any] | None = None,
        include_evidence: bool | None = None,
        external_id: str | None = None,
        customer_id: str | None = None,
    ) -> Any:
        """Run one of the ``HARM_ENDPOINTS`` detectors."""
        try:
            path = HARM_ENDPOINTS[endpoint]
        except KeyError:
            raise ValueError(f"Unknown detection endpoint: {endpoint}") from None
        return await self._post(
            path,
            {
                "content": content,
                "context": context,
                "include_evidence": include_evidence,
                "external_id": external_id,
                "customer_id": customer_id,
            },
        )

    # Media

    async def _upload(self, path: str, file: bytes, filename: str, fields: dict[str, Any]) -> Any:
        form = {key: str(value) for key, value in _compact(fields).items()}
        return await self._call("POST", path, data=form, files={"file": (filename, file)})

    async def analyze_voice(
        self,
        file: bytes,
        filename: str,
        analysis_type: str = "all",
        language: str | None = None,
        child_age: int | None = None,
    ) -> Any:
        return await self._upload(
            "/safety/voice",
            file,
            filename,
            {"analysis_type": analysis_type, "language": language, "child_age": child_age},
        )

    async def analyze_image(self, file: bytes, filename: str, analysis_type: str = "all") -> Any:
        return await self._upload("/safety/image", file, filename, {"analysis_type": analysis_type})

    async def analyze_video(self, file: bytes, filename: str, age_group: str | None = None) -> Any:
        return await self._upload("/safety/video", file, filename, {"age_group": age_group})

    # Webhooks

    async def list_webhooks(self) -> Any:
        return await self._call("GET", "/webhooks")

    async def create_webhook(self, name: str, url: str, events: list[str]) -> Any:
        return await self._post("/webhooks", {"name": name, "url": url, "events": events})

    async def update_webhook(
        self,
        webhook_id: str,
        name: str | None = None,
        url: str | None = None,
        events: list[str] | None = None,
        is_active: bool | None = None,
    ) -> Any:
        payload = _compact({"name": name, "url": url, "events": events, "is_active": is_active})
        return await self._call("PUT", f"/webhooks/{webhook_id}", json=payload)

    async def delete_webhook(self, webhook_id: str) -> Any:
        return await self._call("DELETE", f"/webhooks/{webhook_id}")

    async def test_webhook(self, webhook_id: str) -> Any:
        return await self._call("POST", f"/webhooks/{webhook_id}/test")

    async def regenerate_webhook_secret(self, webhook_id: str) -> Any:
        return await self._call("POST", f"/webhooks/{webhook_id}/regenerate-secret")
