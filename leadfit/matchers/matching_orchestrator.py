# leadfit/matchers/matching_orchestrator.py

import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from loguru import logger

from leadfit.clients import DemographicsClient, PlacesClient, WebsiteSignalsClient
from leadfit.config import CONCURRENCY
from leadfit.errors import ConfigurationError
from leadfit.matchers.business_type import classify_location
from leadfit.matchers.confidence_matcher import score_match
from leadfit.matchers.field_fusion import apply_fused_fields, fuse_fields
from leadfit.matchers.fit_score import build_score_output, compute_score, fit_tier_for
from leadfit.models import (
    CandidateProfile,
    EnrichmentBundle,
    LeadEnrichment,
    LeadRecord,
    LegacyFirmographics,
    MatchResult,
)
from leadfit.normalize import is_blocked_website_domain
from leadfit.score_mapper import crm_score_for, crm_score_label
from leadfit.search_query_set import build_search_queries

MAX_CONCURRENCY = 20


async def find_directory_match(
    lead: LeadRecord,
    client: PlacesClient,
) -> Tuple[Optional[CandidateProfile], Optional[MatchResult]]:
    """
    Walk the search strategies in order and validate the first candidate found.

    A strategy returning no id, or an id whose details come back empty, moves on to the
    next strategy. The first candidate that resolves is scored exactly once: a veto or
    an unaccepted result ends the search with no match.

    Args:
        lead (LeadRecord): Lead to resolve.
        client (PlacesClient): Directory client sharing the process-wide interval gate.

    Returns:
        Tuple[Optional[CandidateProfile], Optional[MatchResult]]: The candidate and its
        match result; the result is returned for a vetoed candidate too so callers can
        log the veto reason. (None, None) when every strategy is exhausted.
    """
    queries = build_search_queries(lead)
    logger.debug(f"🔎 '{lead.business_name}': {len(queries)} search strategies")

    for query in queries:
        place_id = await client.search(query)
        if not place_id:
            continue

        candidate = await client.get_details(place_id)
        if candidate is None:
            logger.debug(f"Details for {place_id} not found, trying next strategy")
            continue

        match = score_match(lead, candidate)
        if match.vetoed:
            logger.info(
                f"🚫 '{lead.business_name}' -> {place_id} vetoed ({match.veto_reason}) "
                f"via {query.strategy}"
            )
        elif match.is_accepted:
            logger.info(
                f"✅ '{lead.business_name}' -> {place_id} '{candidate.name}' "
                f"via {query.strategy} matched={match.matched_fields}"
            )
        else:
            logger.info(f"🤷 '{lead.business_name}' -> {place_id} has no corroborating fields")
        return candidate, match

    logger.info(f"❔ No directory candidate for '{lead.business_name}'")
    return None, None


async def enrich_lead(
    lead: LeadRecord,
    places_client: PlacesClient,
    demographics_client: Optional[DemographicsClient] = None,
    website_signals_client: Optional[WebsiteSignalsClient] = None,
    legacy: Optional[LegacyFirmographics] = None,
) -> LeadEnrichment:
    """
    Run the full resolution and scoring pipeline for one lead.

    Each enrichment source is isolated: a failure is logged, recorded in ``errors`` and
    the source is left out of the bundle. Only ConfigurationError propagates.

    Args:
        lead (LeadRecord): Input lead.
        places_client (PlacesClient): Directory client.
        demographics_client (DemographicsClient): Optional firmographic provider.
        website_signals_client (WebsiteSignalsClient): Optional tech/domain-age detector.
        legacy (LegacyFirmographics): Optional lowest-priority firmographics.

    Returns:
        LeadEnrichment: Bundle, score breakdown, tier and the output dict.
    """
    bundle = EnrichmentBundle(lead=lead, legacy=legacy)
    errors: List[str] = []

    # 1) Directory match
    try:
        candidate, match = await find_directory_match(lead, places_client)
    except ConfigurationError:
        raise
    except Exception as e:
        logger.warning(f"⚠️ Directory resolution failed for '{lead.business_name}': {e}")
        errors.append(f"directory: {e}")
        candidate, match = None, None

    bundle.candidate = candidate
    bundle.match = match
    if bundle.has_directory_match:
        bundle.location_class = classify_location(candidate)
        bundle.fused = fuse_fields(candidate, match, lead)

    # 2) Demographics and website signals, independent of each other
    async def _demographics():
        if demographics_client is None:
            return None
        # Directory website, once fused, replaces the lead's own
        return await demographics_client.enrich(apply_fused_fields(lead, bundle.fused) if bundle.fused else lead)

    async def _website_signals():
        if website_signals_client is None:
            return None
        website = bundle.resolved_website
        if is_blocked_website_domain(website):
            logger.debug(f"'{lead.business_name}' has only a listing page ({website}), no website signals")
            return None
        return await website_signals_client.detect(website)

    demographics, signals = await asyncio.gather(
        _demographics(), _website_signals(), return_exceptions=True
    )
    for label, value in (("demographics", demographics), ("website_signals", signals)):
        if isinstance(value, ConfigurationError):
            raise value
        if isinstance(value, Exception):
            logger.warning(f"⚠️ {label} failed for '{lead.business_name}': {value}")
            errors.append(f"{label}: {value}")
            continue
        setattr(bundle, label, value)

    # 3) Score
    breakdown = compute_score(bundle)
    fit_tier = fit_tier_for(breakdown.total)
    output = build_score_output(bundle, breakdown)
    output["crm_score"] = crm_score_for(breakdown.total, lead.lead_source)
    if output["crm_score"] is not None:
        output["crm_score_label"] = crm_score_label(output["crm_score"])
    if bundle.fused is not None:
        output["fused_fields"] = bundle.fused.to_dict()
        if bundle.fused.audit_note:
            output["audit_note"] = bundle.fused.audit_note
    if match is not None and match.vetoed:
        output["veto_reason"] = match.veto_reason
    output["location_type"] = bundle.location_class.value

    logger.info(f"🏁 '{lead.business_name}': fit_score={breakdown.total} ({fit_tier})")
    return LeadEnrichment(
        lead=lead,
        bundle=bundle,
        breakdown=breakdown,
        fit_tier=fit_tier,
        output=output,
        errors=errors,
    )


async def resolve_batch(
    leads: Sequence[LeadRecord],
    enrich: Callable[[LeadRecord], Awaitable[LeadEnrichment]],
    concurrency: int = CONCURRENCY,
) -> List[LeadEnrichment]:
    """
    Resolve many leads with a bounded worker pool.

    Workers pull (index, lead) pairs from a queue and run the sequential single-lead
    pipeline; results come back in input order. A ConfigurationError from any lead
    stops the batch.

    Args:
        leads (Sequence[LeadRecord]): Leads to resolve.
        enrich (Callable): Coroutine function resolving one lead.
        concurrency (int): Worker count, clamped to 1-20.

    Returns:
        List[LeadEnrichment]: One result per lead, same order as ``leads``.
    """
    workers_count = max(1, min(MAX_CONCURRENCY, int(concurrency)))
    results: List[Optional[LeadEnrichment]] = [None] * len(leads)
    queue: asyncio.Queue = asyncio.Queue()
    for item in enumerate(leads):
        queue.put_nowait(item)

    async def worker(worker_id: int):
        while True:
            try:
                index, lead = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                results[index] = await enrich(lead)
            finally:
                queue.task_done()
            logger.debug(f"Worker {worker_id} finished lead {index}")

    logger.info(f"Resolving {len(leads)} leads with {workers_count} workers")
    tasks = [asyncio.create_task(worker(i)) for i in range(min(workers_count, len(leads)) or 1)]
    try:
        await asyncio.gather(*tasks)
    except Exception:
        for task in tasks:
            task.cancel()
        raise
    return results
