"""
Website signal detection: tracking pixels on the homepage and domain registration age.
"""
import asyncio
import datetime
from typing import Any, Dict, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout
from aiolimiter import AsyncLimiter
from loguru import logger

from leadfit.config import ENRICHMENT_RATE_PER_SECOND, RDAP_DOMAIN_URL, REQUEST_TIMEOUT_SECONDS
from leadfit.models import WebsiteSignals
from leadfit.normalize import extract_domain, is_blocked_website_domain

TECH_PATTERNS = {
    "meta": ["connect.facebook.net", "fbq(", "facebook.com/tr"],
    "ga4": ["gtag('config','G-", 'gtag("config","G-', "gtag('config', 'G-", "googletagmanager.com/gtag/js?id=G-"],
    "google_ads": ["gtag('config','AW-", 'gtag("config","AW-', "gtag('config', 'AW-", "googletagmanager.com/gtag/js?id=AW-"],
    "tiktok": ["analytics.tiktok.com", "ttq.load", "tiktok.com/analytics"],
    "hubspot": ["js.hs-scripts.com", "hs-script-loader", "js.hsforms.net"],
}

USER_AGENT = "Mozilla/5.0 (compatible; leadfit/1.0)"


def detect_tech(html: str) -> WebsiteSignals:
    """Detect marketing technologies by substring patterns in page HTML."""
    signals = WebsiteSignals()
    for tech, patterns in TECH_PATTERNS.items():
        if any(p in html for p in patterns):
            signals.marketing_tools_detected.append(tech)
    detected = set(signals.marketing_tools_detected)
    signals.has_meta_pixel = "meta" in detected
    signals.has_ga4 = "ga4" in detected
    signals.has_google_ads_tag = "google_ads" in detected
    signals.has_tiktok_pixel = "tiktok" in detected
    signals.has_hubspot = "hubspot" in detected
    return signals


def registration_age_years(rdap: Dict[str, Any], today: Optional[datetime.date] = None) -> Optional[float]:
    """Years since the RDAP ``registration`` event, rounded down to one decimal."""
    today = today or datetime.date.today()
    for event in rdap.get("events") or []:
        if event.get("eventAction") != "registration":
            continue
        raw = (event.get("eventDate") or "")[:10]
        try:
            registered = datetime.date.fromisoformat(raw)
        except ValueError:
            return None
        days = (today - registered).days
        if days < 0:
            return None
        return int(days / 365.25 * 10) / 10
    return None


class WebsiteSignalsClient:
    """
    Fetches a website homepage and its RDAP record. Throttled with aiolimiter.

    Each half fails independently: a dead homepage still yields a domain age and vice versa.
    """

    def __init__(self, rate_per_second: float = ENRICHMENT_RATE_PER_SECOND):
        self.rate_limiter = AsyncLimiter(max_rate=rate_per_second, time_period=1.0)
        self._session: Optional[ClientSession] = None

    async def _get_session(self) -> ClientSession:
        if self._session is None or self._session.closed:
            self._session = ClientSession(
                timeout=ClientTimeout(total=REQUEST_TIMEOUT_SECONDS),
                headers={"User-Agent": USER_AGENT},
            )
        return self._session

    async def _fetch_html(self, url: str) -> Optional[str]:
        if "://" not in url:
            url = f"https://{url}"
        async with self.rate_limiter:
            session = await self._get_session()
            try:
                async with session.get(url, allow_redirects=True) as resp:
                    if resp.status >= 400:
                        logger.debug(f"⚠️ Homepage {url} returned HTTP {resp.status}")
                        return None
                    return await resp.text(errors="replace")
            except (ClientError, asyncio.TimeoutError) as e:
                logger.debug(f"⚠️ Homepage fetch failed for {url}: {e}")
                return None

    async def _fetch_domain_age(self, domain: str) -> Optional[float]:
        async with self.rate_limiter:
            session = await self._get_session()
            try:
                async with session.get(RDAP_DOMAIN_URL.format(domain=domain)) as resp:
                    if resp.status != 200:
                        logger.debug(f"⚠️ RDAP lookup for {domain} returned HTTP {resp.status}")
                        return None
                    data = await resp.json(content_type=None)
            except (ClientError, asyncio.TimeoutError, ValueError) as e:
                logger.debug(f"⚠️ RDAP lookup failed for {domain}: {e}")
                return None
        return registration_age_years(data or {})

    async def detect(self, website: Optional[str]) -> Optional[WebsiteSignals]:
        """
        Collect website signals.

        Returns:
            Optional[WebsiteSignals]: None when there is no usable website.
        """
        domain = extract_domain(website)
        if not domain:
            return None
        if is_blocked_website_domain(website):
            logger.debug(f"🚫 {domain} is a social/directory host, skipping website signals")
            return None
        html, age = await asyncio.gather(self._fetch_html(website), self._fetch_domain_age(domain))
        signals = detect_tech(html) if html else WebsiteSignals()
        signals.domain_age_years = age
        logger.debug(
            f"🌐 {domain}: tools={signals.marketing_tools_detected} "
            f"pixels={signals.pixel_count} domain_age={age}"
        )
        return signals

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
