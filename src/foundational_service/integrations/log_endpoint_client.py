from __future__ import annotations

"""Async client for the external daily-log endpoint with three-way outcome mapping."""

import logging
from typing import Any, Mapping, Optional

import httpx

from foundational_service.contracts.daily_log import DeliveryEnvelope, DeliveryOutcome
from project_utility.context import ContextBridge
from project_utility.secrets import mask_url
from project_utility.tracing import trace_span

__all__ = ["LogEndpointClient", "DEFAULT_TIMEOUT"]

DEFAULT_TIMEOUT = 12.0

log = logging.getLogger("foundational_service.integrations.log_endpoint_client")


class LogEndpointClient:
    """One POST per submission, no retry. Safe to share between concurrent interactions."""

    def __init__(
        self,
        endpoint_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not endpoint_url:
            raise ValueError("endpoint_url is required")
        self._endpoint_url = endpoint_url
        self._timeout = timeout
        # Script-style endpoints answer POST with a redirect to the result document.
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    @property
    def endpoint_url(self) -> str:
        return self._endpoint_url

    async def aclose(self) -> None:
        await self._client.aclose()

    async def deliver(self, envelope: DeliveryEnvelope, *, endpoint: Optional[str] = None) -> DeliveryOutcome:
        url = endpoint or self._endpoint_url
        request_id = ContextBridge.request_id()
        diagnostics = self._diagnostics(envelope, url, request_id)
        async with trace_span("daily_log.delivery", request_id=request_id, endpoint=mask_url(url)) as span:
            try:
                response = await self._client.post(
                    url,
                    json=envelope.to_payload(),
                    headers={"Content-Type": "application/json"},
                    timeout=self._timeout,
                )
            except httpx.RequestError as exc:
                span.set_attribute("outcome", "transport_failure")
                log.error(
                    "daily_log.delivery.transport_failure",
                    extra={**diagnostics, "error": f"{type(exc).__name__}: {exc}", "timeout_seconds": self._timeout},
                )
                return DeliveryOutcome.transport_failure(error=f"{type(exc).__name__}: {exc}")

            span.set_attribute("status_code", response.status_code)
            try:
                body = response.json()
            except ValueError as exc:
                span.set_attribute("outcome", "transport_failure")
                log.error(
                    "daily_log.delivery.malformed_response",
                    extra={
                        **diagnostics,
                        "status_code": response.status_code,
                        "error": f"response body is not JSON: {exc}",
                        "body_preview": response.text[:200],
                    },
                )
                return DeliveryOutcome.transport_failure(
                    error="malformed response body",
                    status_code=response.status_code,
                )

            outcome = self._interpret(body, response.status_code)
            span.set_attribute("outcome", outcome.kind.value)

        if outcome.ok:
            log.info(
                "daily_log.delivery.accepted",
                extra={"request_id": request_id, "status_code": response.status_code, "latency_ms": span.elapsed_ms},
            )
        else:
            log.warning(
                "daily_log.delivery.rejected",
                extra={**diagnostics, "status_code": response.status_code, "error": outcome.error},
            )
        return outcome

    @staticmethod
    def _interpret(body: Any, status_code: int) -> DeliveryOutcome:
        if not isinstance(body, Mapping):
            return DeliveryOutcome.rejected(status_code=status_code, error="response body is not an object")
        if not body.get("success"):
            return DeliveryOutcome.rejected(
                status_code=status_code,
                error=str(body.get("message") or body.get("error") or "endpoint did not assert success"),
                body=body,
            )
        return DeliveryOutcome.success(
            status_code=status_code,
            message=str(body.get("message") or ""),
            milestone=str(body.get("milestone") or ""),
            body=body,
        )

    @staticmethod
    def _diagnostics(envelope: DeliveryEnvelope, url: str, request_id: str) -> dict[str, Any]:
        return {
            "request_id": request_id,
            "endpoint": mask_url(url),
            "user_id": envelope.submitter_id,
            "record_keys": sorted(envelope.record),
        }
