"""
Tests for the HTTP adapters, using a stand-in for requests.Session.
"""
import base64

import pytest
import requests

from clients import ClassificationClient, EnrichmentClient
from errors import ClassificationError, EnrichmentError
from models import Recyclable


class FakeResponse:
    def __init__(self, body=None, status_code=200):
        self.body = body
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if isinstance(self.body, Exception):
            raise self.body
        return self.body


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def post(self, url, json=None, timeout=None):
        self.requests.append({"url": url, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


class TestClassificationClient:
    @pytest.mark.asyncio
    async def test_analyze_posts_payload_and_normalizes(self):
        session = FakeSession(
            FakeResponse({"recyclable": "YES", "binColor": "Green", "tip": "Rinse", "answer": "Yes."})
        )
        client = ClassificationClient("http://classifier/", timeout=5, session=session)

        result = await client.analyze("bottle", "SW1A 1AA", b"jpeg")

        sent = session.requests[0]
        assert sent["url"] == "http://classifier/analyze"
        assert sent["timeout"] == 5
        assert sent["json"]["query"] == "bottle"
        assert sent["json"]["postcode"] == "SW1A 1AA"
        assert base64.b64decode(sent["json"]["image"]) == b"jpeg"
        assert result.recyclable == Recyclable.YES
        assert result.bin_color == "Green"
        assert result.council_link is None

    @pytest.mark.asyncio
    async def test_no_image_sends_null(self):
        session = FakeSession(FakeResponse({"recyclable": "no"}))
        client = ClassificationClient("http://classifier", session=session)

        await client.analyze("crisp packet", "")

        assert session.requests[0]["json"]["image"] is None

    @pytest.mark.asyncio
    async def test_network_error(self):
        session = FakeSession(error=requests.ConnectionError("refused"))
        client = ClassificationClient("http://classifier", session=session)

        with pytest.raises(ClassificationError, match="refused"):
            await client.analyze("bottle", "")

    @pytest.mark.asyncio
    async def test_http_error(self):
        client = ClassificationClient("http://classifier", session=FakeSession(FakeResponse({}, 503)))

        with pytest.raises(ClassificationError):
            await client.analyze("bottle", "")

    @pytest.mark.asyncio
    async def test_non_object_body(self):
        client = ClassificationClient("http://classifier", session=FakeSession(FakeResponse(["yes"])))

        with pytest.raises(ClassificationError):
            await client.analyze("bottle", "")


class TestEnrichmentClient:
    @pytest.mark.asyncio
    async def test_suggest_returns_raw_text(self):
        session = FakeSession(FakeResponse({"suggestions": "1. Planter\n2. Vase"}))
        client = EnrichmentClient("http://ideas", session=session)

        text = await client.suggest("glass jar")

        assert text == "1. Planter\n2. Vase"
        assert session.requests[0]["url"] == "http://ideas/suggest"
        assert session.requests[0]["json"] == {"item": "glass jar"}

    @pytest.mark.asyncio
    async def test_missing_suggestions_is_empty(self):
        client = EnrichmentClient("http://ideas", session=FakeSession(FakeResponse({})))
        assert await client.suggest("glass jar") == ""

    @pytest.mark.asyncio
    async def test_failure(self):
        client = EnrichmentClient("http://ideas", session=FakeSession(error=requests.Timeout("slow")))

        with pytest.raises(EnrichmentError):
            await client.suggest("glass jar")

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        client = EnrichmentClient("http://ideas", session=FakeSession(FakeResponse(ValueError("bad json"))))

        with pytest.raises(EnrichmentError):
            await client.suggest("glass jar")
