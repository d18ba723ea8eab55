import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from leadfit.clients.places_client import PlacesClient, parse_place_details
from leadfit.errors import ConfigurationError, TransientFailure
from leadfit.models import GeoBias, SearchQuery
from leadfit.rate_limiting import IntervalGate

DETAILS_PAYLOAD = {
    "id": "ChIJabc123",
    "displayName": {"text": "ABC Roofing LLC", "languageCode": "en"},
    "nationalPhoneNumber": "(555) 123-4567",
    "formattedAddress": "500 Congress Ave, Austin, TX 78701, USA",
    "addressComponents": [
        {"longText": "500", "shortText": "500", "types": ["street_number"]},
        {"longText": "Congress Avenue", "shortText": "Congress Ave", "types": ["route"]},
        {"longText": "Austin", "shortText": "Austin", "types": ["locality", "political"]},
        {"longText": "Texas", "shortText": "TX", "types": ["administrative_area_level_1", "political"]},
        {"longText": "78701", "shortText": "78701", "types": ["postal_code"]},
    ],
    "types": ["roofing_contractor", "point_of_interest", "establishment"],
    "rating": 4.7,
    "userRatingCount": 31,
    "businessStatus": "OPERATIONAL",
    "websiteUri": "https://www.facebook.com/abcroofing",
}


def make_client() -> PlacesClient:
    return PlacesClient(api_key="test-key", gate=IntervalGate(min_interval=0), sleep=AsyncMock())


def test_parse_place_details_maps_components_and_filters_website():
    profile = parse_place_details("ChIJabc123", DETAILS_PAYLOAD)

    assert profile.name == "ABC Roofing LLC"
    assert profile.phone == "(555) 123-4567"
    assert profile.street == "500 Congress Avenue"
    assert profile.city == "Austin"
    assert profile.state == "TX"
    assert profile.postal_code == "78701"
    assert profile.review_count == 31
    assert profile.is_operational is True
    assert profile.is_service_area is False
    assert profile.website is None  # facebook page is a listing, not the business site


def test_parse_place_details_service_area_business():
    payload = dict(DETAILS_PAYLOAD, pureServiceAreaBusiness=True, businessStatus="CLOSED_TEMPORARILY",
                   websiteUri="https://abcroofing.com")
    profile = parse_place_details("ChIJabc123", payload)
    assert profile.is_service_area is True
    assert profile.is_operational is False
    assert profile.website == "https://abcroofing.com"


def test_missing_api_key_is_a_configuration_error():
    with patch("leadfit.clients.places_client.GOOGLE_PLACES_API_KEY", None):
        with pytest.raises(ConfigurationError):
            PlacesClient()


@pytest.mark.asyncio
async def test_search_returns_top_candidate_and_sends_bias():
    client = make_client()
    bias = GeoBias(latitude=30.2672, longitude=-97.7431)
    with patch.object(client, "_send", AsyncMock(return_value=(200, {"places": [{"id": "p1"}, {"id": "p2"}]}))) as send:
        place_id = await client.search(SearchQuery(text="ABC Roofing Austin, TX", strategy="name_city_state", bias=bias))

    assert place_id == "p1"
    body = send.await_args.kwargs["json"]
    assert body["textQuery"] == "ABC Roofing Austin, TX"
    assert body["locationBias"]["circle"]["radius"] == 50000.0
    assert send.await_args.kwargs["headers"]["X-Goog-FieldMask"] == "places.id"


@pytest.mark.asyncio
async def test_empty_result_is_not_retried():
    client = make_client()
    with patch.object(client, "_send", AsyncMock(return_value=(200, {}))) as send:
        assert await client.search(SearchQuery(text="nothing", strategy="name_only")) is None
    assert send.await_count == 1
    client._sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_transient_failure_retried_with_backoff():
    client = make_client()
    responses = [TransientFailure("HTTP 503"), TransientFailure("timeout"), (200, {"places": [{"id": "p1"}]})]
    with patch.object(client, "_send", AsyncMock(side_effect=responses)) as send:
        assert await client.search(SearchQuery(text="ABC Roofing", strategy="name_only")) == "p1"
    assert send.await_count == 3
    assert [c.args[0] for c in client._sleep.await_args_list] == [1.0, 2.0]


@pytest.mark.asyncio
async def test_exhausted_retries_treated_as_no_result():
    client = make_client()
    with patch.object(client, "_send", AsyncMock(side_effect=TransientFailure("HTTP 500"))) as send:
        assert await client.search(SearchQuery(text="ABC Roofing", strategy="name_only")) is None
    assert send.await_count == 4


@pytest.mark.asyncio
async def test_rejected_credentials_raise_configuration_error():
    client = make_client()
    with patch.object(client, "_send", AsyncMock(return_value=(403, {"error": {"message": "denied"}}))):
        with pytest.raises(ConfigurationError):
            await client.search(SearchQuery(text="ABC Roofing", strategy="name_only"))


@pytest.mark.asyncio
async def test_get_details_not_found_and_found():
    client = make_client()
    with patch.object(client, "_send", AsyncMock(return_value=(404, {}))):
        assert await client.get_details("gone") is None

    with patch.object(client, "_send", AsyncMock(return_value=(200, DETAILS_PAYLOAD))) as send:
        profile = await client.get_details("ChIJabc123")
    assert profile.place_id == "ChIJabc123"
    assert send.await_args.args[0] == "GET"
    assert send.await_args.args[1].endswith("/places/ChIJabc123")


class FakeResponse:
    """aiohttp response double usable as ``async with session.request(...)``."""

    def __init__(self, status: int, payload=None):
        self.status = status
        self._payload = payload

    async def json(self, content_type=None):
        return self._payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


@pytest.mark.asyncio
async def test_gate_is_awaited_on_every_attempt_including_retries():
    gate = MagicMock()
    gate.wait = AsyncMock()
    client = PlacesClient(api_key="test-key", gate=gate, sleep=AsyncMock())
    session = MagicMock()
    session.request.side_effect = [
        FakeResponse(503),
        FakeResponse(503),
        FakeResponse(200, {"places": [{"id": "p1"}]}),
    ]
    client._get_session = AsyncMock(return_value=session)

    place_id = await client.search(SearchQuery(text="ABC Roofing Austin, TX", strategy="name_city_state"))

    assert place_id == "p1"
    assert session.request.call_count == 3
    assert gate.wait.await_count == 3
