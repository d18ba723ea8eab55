"""
Firmographic enrichment through the People Data Labs company enrich endpoint.
"""
import asyncio
import datetime
from typing import Any, Dict, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout
from aiolimiter import AsyncLimiter
from loguru import logger

from leadfit.config import (
    CIRCUIT_FAILURE_THRESHOLD,
    CIRCUIT_RESET_TIMEOUT_SECONDS,
    ENRICHMENT_RATE_PER_SECOND,
    PDL_API_KEY,
    PDL_COMPANY_ENRICH_URL,
    REQUEST_TIMEOUT_SECONDS,
)
from leadfit.errors import ConfigurationError, TransientFailure
from leadfit.models import DemographicData, LeadRecord
from leadfit.normalize import extract_domain, is_blocked_website_domain
from leadfit.retry import CircuitBreaker, should_retry_http_status


def parse_company(data: Dict[str, Any], today: Optional[datetime.date] = None) -> DemographicData:
    """Map a company enrich payload onto DemographicData."""
    today = today or datetime.date.today()
    founded = data.get("founded")
    years = None
    if isinstance(founded, int) and 0 < founded <= today.year:
        years = float(today.year - founded)
    employee_count = data.get("employee_count")
    return DemographicData(
        years_in_business=years,
        founded_year=founded if isinstance(founded, int) else None,
        employee_count=int(employee_count) if employee_count is not None else None,
        size_range=data.get("size"),
        industry=data.get("industry"),
    )


def lookup_params(lead: LeadRecord) -> Dict[str, str]:
    """
    Query parameters for one lead: the website domain when it is the business's own,
    otherwise the business name. Social and directory pages identify the host, not the business.
    """
    params = {"pretty": "false"}
    domain = extract_domain(lead.website)
    if domain and not is_blocked_website_domain(lead.website):
        params["website"] = domain
    else:
        params["name"] = lead.business_name
    if lead.state:
        params["region"] = lead.state
    return params


class DemographicsClient:
    """
    Company enrich client. Throttled with aiolimiter; one call per lead, no retries.
    Calls go through a circuit breaker so a provider that keeps failing is skipped
    for the rest of the batch until its reset timeout passes.

    Raises:
        ConfigurationError: If no API key is available.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        rate_per_second: float = ENRICHMENT_RATE_PER_SECOND,
        breaker: Optional[CircuitBreaker] = None,
    ):
        self.api_key = api_key or PDL_API_KEY
        if not self.api_key:
            raise ConfigurationError("PDL_API_KEY is required for demographic enrichment")
        self.rate_limiter = AsyncLimiter(max_rate=rate_per_second, time_period=1.0)
        self.breaker = breaker or CircuitBreaker(
            failure_threshold=CIRCUIT_FAILURE_THRESHOLD,
            reset_timeout=CIRCUIT_RESET_TIMEOUT_SECONDS,
            expected_exception=(TransientFailure, ClientError, asyncio.TimeoutError),
            name="pdl",
        )
        self._session: Optional[ClientSession] = None

    async def _get_session(self) -> ClientSession:
        if self._session is None or self._session.closed:
            self._session = ClientSession(timeout=ClientTimeout(total=REQUEST_TIMEOUT_SECONDS))
        return self._session

    async def enrich(self, lead: LeadRecord) -> Optional[DemographicData]:
        """
        Look up a company by its own website (preferred) or name.

        Returns:
            Optional[DemographicData]: None when the provider has no record.

        Raises:
            CircuitOpenError: The provider failed too often recently; not fatal.
        """
        return await self.breaker.call(lambda: self._enrich(lead))

    async def _enrich(self, lead: LeadRecord) -> Optional[DemographicData]:
        params = lookup_params(lead)

        async with self.rate_limiter:
            session = await self._get_session()
            async with session.get(
                PDL_COMPANY_ENRICH_URL,
                params=params,
                headers={"X-Api-Key": self.api_key},
            ) as resp:
                if resp.status == 404:
                    logger.debug(f"∅ No demographic record for '{lead.business_name}'")
                    return None
                if resp.status in (401, 403):
                    raise ConfigurationError(f"Demographic provider rejected credentials (HTTP {resp.status})")
                if should_retry_http_status(resp.status):
                    raise TransientFailure(f"Demographic provider HTTP {resp.status}", status=resp.status)
                resp.raise_for_status()
                data = await resp.json(content_type=None)

        result = parse_company(data or {})
        logger.debug(
            f"🏢 Demographics for '{lead.business_name}': years={result.years_in_business} "
            f"employees={result.employee_count} size={result.size_range}"
        )
        return result

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
