"""
Google Places (New) directory client: text search and place details.

Every outbound attempt, retries included, passes through the shared interval gate.
"""
import asyncio
from typing import Any, Dict, List, Optional, Tuple

from aiohttp import ClientError, ClientSession, ClientTimeout
from loguru import logger

from leadfit.config import (
    BACKOFF_BASE_SECONDS,
    BACKOFF_MAX_SECONDS,
    GOOGLE_PLACES_API_KEY,
    MAX_RETRIES,
    MIN_REQUEST_INTERVAL_SECONDS,
    PLACES_DETAILS_FIELD_MASK,
    PLACES_DETAILS_URL,
    PLACES_SEARCH_FIELD_MASK,
    PLACES_SEARCH_URL,
    REQUEST_TIMEOUT_SECONDS,
)
from leadfit.errors import ConfigurationError, RetryError, TransientFailure
from leadfit.models import CandidateProfile, SearchQuery
from leadfit.normalize import filter_business_website
from leadfit.rate_limiting import IntervalGate, get_interval_gate
from leadfit.retry import retry_with_backoff, should_retry_http_status

AUTH_FAILURE_STATUSES = {401, 403}


def _component(components: List[Dict[str, Any]], *kinds: str, short: bool = False) -> Optional[str]:
    """First address component carrying any of ``kinds``, in the order given."""
    for kind in kinds:
        for comp in components:
            if kind in (comp.get("types") or []):
                value = comp.get("shortText" if short else "longText") or comp.get("longText")
                if value:
                    return value
    return None


def parse_place_details(place_id: str, data: Dict[str, Any]) -> CandidateProfile:
    """
    Convert a Places API (New) details payload into a CandidateProfile.

    Args:
        place_id (str): The id the details were fetched for.
        data (Dict[str, Any]): Parsed JSON body.

    Returns:
        CandidateProfile: Profile with the website already filtered against the
                          social/directory blocklist.
    """
    components = data.get("addressComponents") or []
    number = _component(components, "street_number")
    route = _component(components, "route")
    street = " ".join(p for p in (number, route) if p) or None

    review_count = data.get("userRatingCount")
    rating = data.get("rating")
    raw_website = data.get("websiteUri")
    website = filter_business_website(raw_website)
    if raw_website and not website:
        logger.debug(f"🚫 Ignoring directory/social website for {place_id}: {raw_website}")

    return CandidateProfile(
        place_id=data.get("id") or place_id,
        name=(data.get("displayName") or {}).get("text"),
        phone=data.get("nationalPhoneNumber") or data.get("internationalPhoneNumber"),
        formatted_address=data.get("formattedAddress"),
        street=street,
        city=_component(components, "locality", "postal_town", "sublocality"),
        state=_component(components, "administrative_area_level_1", short=True),
        postal_code=_component(components, "postal_code"),
        types=list(data.get("types") or []),
        rating=float(rating) if rating is not None else None,
        review_count=int(review_count) if review_count is not None else None,
        is_operational=data.get("businessStatus") == "OPERATIONAL",
        is_service_area=bool(data.get("pureServiceAreaBusiness")),
        website=website,
    )


class PlacesClient:
    """
    Rate-limited, retried client for the business directory.

    Args:
        api_key: Places API key. Defaults to GOOGLE_PLACES_API_KEY from the environment.
        gate: Interval gate shared by every caller. Defaults to the process-wide
              "google_places" gate.
        timeout: Per-attempt timeout in seconds.
        max_retries: Retries after the first attempt on transient failures.
        sleep: Coroutine used for backoff waits. Injectable for tests.

    Raises:
        ConfigurationError: If no API key is available.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        gate: Optional[IntervalGate] = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        max_retries: int = MAX_RETRIES,
        sleep=asyncio.sleep,
    ):
        self.api_key = api_key or GOOGLE_PLACES_API_KEY
        if not self.api_key:
            raise ConfigurationError("GOOGLE_PLACES_API_KEY is required")
        self.gate = gate or get_interval_gate("google_places", MIN_REQUEST_INTERVAL_SECONDS)
        self.timeout = timeout
        self.max_retries = max_retries
        self._sleep = sleep
        self._session: Optional[ClientSession] = None

    async def _get_session(self) -> ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = ClientSession(timeout=ClientTimeout(total=self.timeout))
        return self._session

    def _headers(self, field_mask: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": field_mask,
        }

    async def _send(self, method: str, url: str, **kwargs) -> Tuple[int, Dict[str, Any]]:
        """
        One gated attempt. Retryable outcomes are raised as TransientFailure.

        Returns:
            Tuple[int, Dict[str, Any]]: HTTP status and parsed JSON body ({} when empty).
        """
        await self.gate.wait()
        session = await self._get_session()
        try:
            async with session.request(method, url, **kwargs) as resp:
                if should_retry_http_status(resp.status):
                    raise TransientFailure(f"HTTP {resp.status} from {url}", status=resp.status)
                try:
                    data = await resp.json(content_type=None)
                except ValueError:
                    logger.debug(f"Non-JSON body from {url} (HTTP {resp.status})")
                    data = None
                return resp.status, data or {}
        except asyncio.TimeoutError as e:
            raise TransientFailure(f"Timeout after {self.timeout}s calling {url}") from e
        except ClientError as e:
            raise TransientFailure(f"Network error calling {url}: {e}") from e

    async def _call(self, method: str, url: str, context: str, **kwargs) -> Optional[Tuple[int, Dict[str, Any]]]:
        """Retried call. Returns None once retries are exhausted."""
        try:
            status, data = await retry_with_backoff(
                lambda: self._send(method, url, **kwargs),
                max_retries=self.max_retries,
                base_delay=BACKOFF_BASE_SECONDS,
                max_delay=BACKOFF_MAX_SECONDS,
                sleep=self._sleep,
                context=context,
            )
        except RetryError as e:
            logger.warning(f"⚠️ {context} gave up, treating as no result: {e}")
            return None
        if status in AUTH_FAILURE_STATUSES:
            raise ConfigurationError(f"Directory API rejected credentials (HTTP {status})")
        return status, data

    async def search(self, query: SearchQuery) -> Optional[str]:
        """
        Run one text search and return the top candidate id.

        Args:
            query (SearchQuery): Query text and optional geo-bias.

        Returns:
            Optional[str]: Place id of the top result, or None on zero results or
                           after exhausting retries.
        """
        body: Dict[str, Any] = {"textQuery": query.text}
        if query.bias is not None:
            body["locationBias"] = {
                "circle": {
                    "center": {"latitude": query.bias.latitude, "longitude": query.bias.longitude},
                    "radius": query.bias.radius_meters,
                }
            }

        result = await self._call(
            "POST",
            PLACES_SEARCH_URL,
            context=f"places-search:{query.strategy}",
            json=body,
            headers=self._headers(PLACES_SEARCH_FIELD_MASK),
        )
        if result is None:
            return None
        status, data = result
        if status >= 400:
            logger.warning(f"⚠️ Places search HTTP {status} for '{query.text}': {data.get('error', {}).get('message')}")
            return None

        places = data.get("places") or []
        if not places:
            logger.debug(f"∅ No places for [{query.strategy}] '{query.text}'")
            return None
        place_id = places[0].get("id")
        logger.debug(f"✅ [{query.strategy}] '{query.text}' -> {place_id}")
        return place_id

    async def get_details(self, place_id: str) -> Optional[CandidateProfile]:
        """
        Fetch the full profile for a candidate id.

        Returns:
            Optional[CandidateProfile]: The profile, or None if the place is gone or
                                        the call kept failing.
        """
        result = await self._call(
            "GET",
            PLACES_DETAILS_URL.format(place_id=place_id),
            context="places-details",
            headers=self._headers(PLACES_DETAILS_FIELD_MASK),
        )
        if result is None:
            return None
        status, data = result
        if status == 404:
            logger.debug(f"∅ Place {place_id} not found")
            return None
        if status >= 400:
            logger.warning(f"⚠️ Places details HTTP {status} for {place_id}")
            return None
        return parse_place_details(place_id, data)

    async def close(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
