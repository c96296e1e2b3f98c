"""Tests for ClassificationClient."""

import asyncio
import base64
import json
from dataclasses import replace
from unittest import mock

import httpx
import pytest

from dental_classifier.client.classification_client import (
    ClassificationClient,
)
from dental_classifier.client.classifier_options import (
    ClassifierOptions,
    RequestEncoding,
)
from dental_classifier.client.exceptions import (
    NetworkUnreachableError,
    PayloadTooLargeError,
    RequestTimeoutError,
    ResponseParseError,
    ServerError,
    ServiceWarmingError,
)
from dental_classifier.client.models import ImageCandidate, Prediction
from tests.utils.image_generation import create_candidate
from tests.utils.mock_service import MockClassificationService, ok, status


def _predictions(*items: object) -> httpx.Response:
    return httpx.Response(200, json={"predictions": list(items)})


@pytest.fixture
def candidate() -> ImageCandidate:
    return create_candidate(200, 200, img_format="JPEG")


@pytest.mark.asyncio
async def test_submit_returns_predictions_in_server_order(
    options: ClassifierOptions, candidate: ImageCandidate
) -> None:
    service = MockClassificationService(
        ok(
            [
                {"class": "Healthy", "confidence": 0.05},
                {"class": "Caries", "confidence": 0.92},
                {"class": "Gingivitis", "confidence": 1},
            ]
        )
    )

    async with service.client(options) as client:
        result = await client.submit(candidate)

    assert result.predictions == (
        Prediction("Healthy", 0.05),
        Prediction("Caries", 0.92),
        Prediction("Gingivitis", 1.0),
    )
    assert service.call_count == 1


@pytest.mark.asyncio
async def test_submit_posts_data_uri_json(
    options: ClassifierOptions, candidate: ImageCandidate
) -> None:
    service = MockClassificationService()

    async with service.client(options) as client:
        _ = await client.submit(candidate)

    request = service.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://classifier.test/api/classify"
    assert request.headers["content-type"] == "application/json"

    body = json.loads(request.content)
    prefix = "data:image/jpeg;base64,"
    assert body["image"].startswith(prefix)
    assert base64.b64decode(body["image"][len(prefix) :]) == candidate.data


@pytest.mark.asyncio
async def test_submit_posts_multipart_form(
    options: ClassifierOptions, candidate: ImageCandidate
) -> None:
    service = MockClassificationService()
    options = replace(options, request_encoding=RequestEncoding.MULTIPART)

    async with service.client(options) as client:
        _ = await client.submit(candidate)

    request = service.requests[0]
    assert request.headers["content-type"].startswith("multipart/form-data")
    assert b'name="image"; filename="test.jpeg"' in request.content
    assert candidate.data in request.content


@pytest.mark.asyncio
async def test_503_is_service_warming(
    options: ClassifierOptions, candidate: ImageCandidate
) -> None:
    service = MockClassificationService(status(503))

    async with service.client(options) as client:
        with pytest.raises(ServiceWarmingError) as exc_info:
            _ = await client.submit(candidate)

    assert exc_info.value.wait_hint == options.warmup_wait_hint
    assert "starting up" in exc_info.value.user_message
    assert "50 seconds" in exc_info.value.user_message


@pytest.mark.asyncio
async def test_413_is_payload_too_large(
    options: ClassifierOptions, candidate: ImageCandidate
) -> None:
    service = MockClassificationService(status(413))

    async with service.client(options) as client:
        with pytest.raises(PayloadTooLargeError):
            _ = await client.submit(candidate)


@pytest.mark.asyncio
@pytest.mark.parametrize("code", [400, 404, 422, 500, 502, 504])
async def test_other_statuses_are_server_errors(
    options: ClassifierOptions, candidate: ImageCandidate, code: int
) -> None:
    service = MockClassificationService(status(code))

    async with service.client(options) as client:
        with pytest.raises(ServerError) as exc_info:
            _ = await client.submit(candidate)

    assert exc_info.value.status_code == code
    assert exc_info.value.user_message == (
        "Failed to classify image. Please try again."
    )


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (httpx.ConnectError("refused"), NetworkUnreachableError),
        (httpx.ReadError("reset"), NetworkUnreachableError),
        (httpx.RemoteProtocolError("eof"), NetworkUnreachableError),
        (httpx.ConnectTimeout("slow"), RequestTimeoutError),
        (httpx.ReadTimeout("slow"), RequestTimeoutError),
    ],
)
async def test_transport_failures_are_classified(
    options: ClassifierOptions,
    candidate: ImageCandidate,
    error: Exception,
    expected: type[Exception],
) -> None:
    service = MockClassificationService(error)

    async with service.client(options) as client:
        with pytest.raises(expected) as exc_info:
            _ = await client.submit(candidate)

    assert exc_info.value.__cause__ is error


@pytest.mark.asyncio
async def test_total_timeout_is_enforced(
    options: ClassifierOptions, candidate: ImageCandidate
) -> None:
    service = MockClassificationService()
    service.gate = asyncio.Event()
    options = replace(options, timeout=0.05)

    async with service.client(options) as client:
        with pytest.raises(RequestTimeoutError, match="No response"):
            _ = await client.submit(candidate)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, content=b"<html>not json</html>"),
        httpx.Response(200, json=[{"class": "Caries", "confidence": 0.9}]),
        httpx.Response(200, json={"result": []}),
        httpx.Response(200, json={"predictions": "Caries"}),
        _predictions("Caries"),
        _predictions({"confidence": 0.9}),
        _predictions({"class": "", "confidence": 0.9}),
        _predictions({"class": 7, "confidence": 0.9}),
        _predictions({"class": "Caries"}),
        _predictions({"class": "Caries", "confidence": "0.9"}),
        _predictions({"class": "Caries", "confidence": True}),
        _predictions({"class": "Caries", "confidence": 1.5}),
        _predictions({"class": "Caries", "confidence": -0.1}),
        _predictions(
            {"class": "Caries", "confidence": 0.9}, {"class": "Healthy"}
        ),
    ],
)
async def test_malformed_bodies_are_parse_errors(
    options: ClassifierOptions,
    candidate: ImageCandidate,
    response: httpx.Response,
) -> None:
    service = MockClassificationService(response)

    async with service.client(options) as client:
        with pytest.raises(ResponseParseError):
            _ = await client.submit(candidate)


@pytest.mark.asyncio
async def test_empty_prediction_list_is_valid(
    options: ClassifierOptions, candidate: ImageCandidate
) -> None:
    service = MockClassificationService(
        httpx.Response(200, json={"predictions": []})
    )

    async with service.client(options) as client:
        result = await client.submit(candidate)

    assert len(result) == 0
    assert result.top is None


@pytest.mark.asyncio
async def test_owned_http_client_closed(options: ClassifierOptions) -> None:
    client = ClassificationClient(options)

    async with client:
        assert not client.http_client.is_closed

    assert client.http_client.is_closed


@pytest.mark.asyncio
async def test_injected_http_client_left_open(
    options: ClassifierOptions,
) -> None:
    http_client = mock.Mock(spec=httpx.AsyncClient)
    http_client.aclose = mock.AsyncMock()

    async with ClassificationClient(options, http_client=http_client):
        pass

    http_client.aclose.assert_not_called()
