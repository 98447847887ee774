"""Transit timetable client.

"No timetable data" is a normal outcome for obscure services, so this client never
raises for transport or HTTP failures: it returns a ``Timetable`` with
``success=False`` that echoes the request.
"""

import logging
import time

import httpx
from pydantic import ValidationError

from backend.tourplan.models.timetable import Timetable, TimetableRequest
from backend.tourplan.utils.logging import StructuredUpstreamLogger
from backend.tourplan.utils.metrics import UpstreamMetrics

logger = logging.getLogger(__name__)

SERVICE_NAME = "timetable"
DEFAULT_TIMETABLE_URL = "http://localhost:8001/api/timetable"


class TimetableClient:
    """Client for the transit timetable service."""

    def __init__(
        self,
        api_url: str = DEFAULT_TIMETABLE_URL,
        timeout_seconds: float = 15.0,
        client: httpx.AsyncClient | None = None,
        metrics: UpstreamMetrics | None = None,
    ) -> None:
        """Initialize client.

        Args:
            api_url: Full timetable endpoint URL
            timeout_seconds: Per-call timeout
            client: Optional shared httpx client (for connection reuse and mocks)
            metrics: Metrics recorder (optional, defaults to no-op)
        """
        self._api_url = api_url
        self._timeout = timeout_seconds
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()
        self._metrics = metrics or UpstreamMetrics()
        self._call_logger = StructuredUpstreamLogger(SERVICE_NAME)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def get_timetable(self, request: TimetableRequest) -> Timetable:
        """Fetch the timetable for one service departure.

        Args:
            request: Service id, departure date (YYYY-MM-DD) and time (HH:MM)

        Returns:
            Timetable; ``success=False`` with an ``error`` message on any failure
        """
        params = {
            "service_id": request.service_id,
            "departure_date": request.departure_date,
            "departure_time": request.departure_time,
        }
        logger.info(f"Fetching timetable for service {request.service_id}")
        start = time.monotonic()

        try:
            response = await self._client.get(self._api_url, params=params, timeout=self._timeout)
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException:
            return self._failed(request, start, "timeout", "Timetable request timed out")
        except httpx.HTTPStatusError as e:
            return self._failed(
                request,
                start,
                "http_error",
                f"Timetable service returned {e.response.status_code}",
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return self._failed(request, start, "transport_error", str(e) or type(e).__name__)
        except ValueError:
            return self._failed(
                request, start, "decode_error", "Timetable service returned invalid JSON"
            )

        if not isinstance(body, dict):
            return self._failed(
                request, start, "decode_error", "Timetable service returned an unexpected body"
            )

        # Request fields always echo the request
        merged = {**{k: v for k, v in body.items() if v is not None}, **params}
        merged.setdefault("success", True)

        try:
            timetable = Timetable.model_validate(merged)
        except ValidationError:
            return self._failed(
                request, start, "decode_error", "Timetable service returned an unexpected body"
            )

        if not timetable.success and not timetable.error:
            timetable.error = timetable.message or "No timetable data found"

        latency_ms = (time.monotonic() - start) * 1000
        outcome = "success" if timetable.success else "not_found"
        self._metrics.record_latency(SERVICE_NAME, "get_timetable", outcome, latency_ms)
        self._call_logger.log_call("get_timetable", outcome, latency_ms)
        logger.info(
            f"Timetable for service {request.service_id} fetched "
            f"(has_schedule={bool(timetable.schedule)})"
        )
        return timetable

    def _failed(
        self, request: TimetableRequest, start: float, reason: str, message: str
    ) -> Timetable:
        latency_ms = (time.monotonic() - start) * 1000
        self._metrics.record_latency(SERVICE_NAME, "get_timetable", "error", latency_ms)
        self._metrics.inc_error(SERVICE_NAME, reason)
        self._call_logger.log_call("get_timetable", "error", latency_ms, error_reason=reason)
        logger.error(f"Error fetching timetable for service {request.service_id}: {message}")
        return Timetable.failed(request, message)
