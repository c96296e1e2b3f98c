"""The Classification Client Class."""

import asyncio
import json
import logging
import types
from typing import Any

import httpx

from dental_classifier.client.classifier_options import ClassifierOptions
from dental_classifier.client.exceptions import (
    NetworkUnreachableError,
    PayloadTooLargeError,
    RequestTimeoutError,
    ResponseParseError,
    ServerError,
    ServiceWarmingError,
)
from dental_classifier.client.models import (
    ClassificationRequest,
    ClassificationResult,
    ImageCandidate,
    Prediction,
)

HTTP_PAYLOAD_TOO_LARGE = 413
HTTP_SERVICE_UNAVAILABLE = 503


class ClassificationClient:
    """The Classification Client Class.

    This class performs a single classification attempt against the remote
    service and reports its outcome. It never retries on its own; callers
    combine it with a RetryPolicy.
    """

    def __init__(
        self,
        options: ClassifierOptions,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Classification Client.

        Args:
            options: Configuration options for the client.
            http_client: HTTP client to use. When omitted the client creates
                and owns one.

        """
        self.logger = logging.getLogger(__name__)
        self.options = options
        self._owns_http_client = http_client is None
        self.http_client = (
            http_client
            if http_client is not None
            else httpx.AsyncClient(
                timeout=httpx.Timeout(options.timeout),
                headers={"Accept": "application/json"},
            )
        )

    async def submit(self, candidate: ImageCandidate) -> ClassificationResult:
        """Classify an accepted image with a single request.

        Args:
            candidate: The image to classify.

        Returns:
            The predictions, in the order the service returned them.

        Raises:
            RequestTimeoutError: If the attempt exceeded the timeout.
            NetworkUnreachableError: If the service could not be reached.
            ServiceWarmingError: If the service is starting up (503).
            PayloadTooLargeError: If the upload was rejected as too large.
            ServerError: For any other non-success status.
            ResponseParseError: If a successful body is malformed.

        """
        request = ClassificationRequest.from_candidate(
            candidate, self.options.request_encoding
        )
        self.logger.debug(
            "Posting %s (%d bytes, %s) to %s",
            request.filename,
            candidate.size,
            request.encoding.value,
            self.options.classify_url,
        )

        try:
            response = await asyncio.wait_for(
                self.http_client.post(
                    self.options.classify_url, **request.as_httpx_kwargs()
                ),
                timeout=self.options.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            msg = f"No response within {self.options.timeout:.1f}s"
            raise RequestTimeoutError(msg) from e
        except httpx.TransportError as e:
            msg = f"Failed to connect to classification service: {e}"
            raise NetworkUnreachableError(msg) from e
        except httpx.RequestError as e:
            msg = f"Request to classification service failed: {e}"
            raise ServerError(msg) from e

        self._raise_for_status(response)
        return self._parse_response(response)

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Map a non-success status to a classifier error."""
        if response.is_success:
            return

        status = response.status_code
        self.logger.debug(
            "Classification service returned %d: %s", status, response.text
        )
        if status == HTTP_SERVICE_UNAVAILABLE:
            raise ServiceWarmingError(wait_hint=self.options.warmup_wait_hint)
        if status == HTTP_PAYLOAD_TOO_LARGE:
            raise PayloadTooLargeError
        msg = f"Classification request failed with status {status}"
        raise ServerError(msg, status_code=status)

    def _parse_response(self, response: httpx.Response) -> ClassificationResult:
        """Parse a success body into ordered predictions."""
        try:
            body: Any = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            msg = f"Response body is not valid JSON: {e}"
            raise ResponseParseError(msg) from e

        if not isinstance(body, dict) or not isinstance(
            body.get("predictions"), list
        ):
            msg = "Response body is missing a 'predictions' list"
            raise ResponseParseError(msg)

        return ClassificationResult(
            predictions=tuple(
                _parse_prediction(index, item)
                for index, item in enumerate(body["predictions"])
            )
        )

    async def close(self) -> None:
        """Close the HTTP client if this client created it."""
        if self._owns_http_client:
            await self.http_client.aclose()

    async def __aenter__(self) -> "ClassificationClient":
        """Context manager entry point."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        """Context manager exit point."""
        await self.close()


def _parse_prediction(index: int, item: object) -> Prediction:
    """Validate one prediction entry of a response body."""
    if not isinstance(item, dict):
        msg = f"Prediction {index} is not an object"
        raise ResponseParseError(msg)

    class_name = item.get("class")
    confidence = item.get("confidence")
    if not isinstance(class_name, str) or not class_name:
        msg = f"Prediction {index} has no valid 'class'"
        raise ResponseParseError(msg)
    # bool is an int subclass but never a valid confidence
    if isinstance(confidence, bool) or not isinstance(confidence, int | float):
        msg = f"Prediction {index} has no numeric 'confidence'"
        raise ResponseParseError(msg)
    if not 0.0 <= confidence <= 1.0:
        msg = f"Prediction {index} confidence {confidence} is outside [0, 1]"
        raise ResponseParseError(msg)

    return Prediction(class_name=class_name, confidence=float(confidence))
