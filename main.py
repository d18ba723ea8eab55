import os
import asyncio
import pandas as pd
import numpy as np
import csv
import json
from typing import List, Optional, Tuple
import sys
from loguru import logger

from leadfit.models import LeadEnrichment, LeadRecord, LegacyFirmographics
from leadfit.matchers.matching_orchestrator import enrich_lead, resolve_batch
from leadfit.config import INPUT_CSV, OUTPUT_CSV, CONCURRENCY, LOG_LEVEL, PDL_API_KEY
from leadfit.clients import DemographicsClient, PlacesClient, WebsiteSignalsClient

OUTPUT_COLUMNS = [
    "Business Name", "place_id", "matched_fields", "veto_reason", "location_type",
    "fit_score", "fit_tier", "crm_score", "crm_score_label", "score_breakdown", "fused_fields",
    "audit_note", "errors",
]


def _to_number(value) -> Optional[float]:
    """Coerce a CSV cell (possibly a numpy scalar or '1,200') to float; None if blank."""
    if value is None:
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        return None if pd.isna(value) else float(value)
    try:
        return float(str(value).replace(",", "").strip())
    except ValueError:
        return None


def _to_text(value) -> Optional[str]:
    if value is None:
        return None
    # Phones and zips arrive as floats when the column is numeric
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def load_leads_from_csv(
    file_path: str,
    nrows: int = None,
) -> List[Tuple[LeadRecord, Optional[LegacyFirmographics]]]:
    """Load leads from CSV as LeadRecord objects plus any legacy firmographics columns."""
    df = pd.read_csv(file_path, nrows=nrows, dtype={"Phone": str, "Zip": str})
    leads = []
    for _, row in df.iterrows():
        # Helper to safely extract values from pandas Series, converting NaN to None
        def safe_get(col):
            if col not in row.index:
                return None
            val = row[col]
            if pd.isna(val):
                return None
            return val

        name = _to_text(safe_get("Business Name")) or ""
        if not name:
            logger.warning("Skipping row without a business name")
            continue

        lead = LeadRecord(
            business_name=name,
            phone=_to_text(safe_get("Phone")),
            city=_to_text(safe_get("City")),
            state=_to_text(safe_get("State")),
            street=_to_text(safe_get("Street")),
            postal_code=_to_text(safe_get("Zip")),
            website=_to_text(safe_get("Website")),
            lead_source=_to_text(safe_get("Lead Source")),
        )

        legacy = None
        years = _to_number(safe_get("Years In Business"))
        employees = _to_number(safe_get("Employees"))
        if years is not None or employees is not None:
            legacy = LegacyFirmographics(
                years_in_business=years,
                employee_estimate=int(employees) if employees is not None else None,
            )
        leads.append((lead, legacy))
    return leads


def result_row(result: LeadEnrichment) -> list:
    output = result.output
    return [
        result.lead.business_name,
        output.get("place_id", ""),
        ";".join(output.get("matched_fields", [])),
        output.get("veto_reason", ""),
        output.get("location_type", ""),
        output["fit_score"],
        output["fit_tier"],
        "" if output.get("crm_score") is None else output["crm_score"],
        output.get("crm_score_label", ""),
        json.dumps(output["score_breakdown"]),
        json.dumps(output.get("fused_fields", {})),
        output.get("audit_note", ""),
        "; ".join(result.errors),
    ]


async def main():
    """
    Orchestrate the full batch pipeline.

    - Loads leads from the input CSV.
    - Resolves and scores them with a bounded worker pool sharing one directory gate.
    - Writes one row per lead, in input order, to the output CSV.
    """
    # Initialize logs
    logger.remove()  # Remove default handler
    logger.add(sys.stderr, level=LOG_LEVEL, format="<green>{time:HH:mm:ss}</green> | <level>{message}</level>")

    rows = load_leads_from_csv(INPUT_CSV)
    legacy_by_lead = {id(lead): legacy for lead, legacy in rows}
    leads = [lead for lead, _ in rows]
    logger.info(f"📥 Loaded {len(leads)} leads from {INPUT_CSV}")

    # Missing directory key is fatal; demographics are optional
    places_client = PlacesClient()
    demographics_client = DemographicsClient() if PDL_API_KEY else None
    if demographics_client is None:
        logger.warning("PDL_API_KEY not set, scoring without demographic data")
    website_signals_client = WebsiteSignalsClient()

    async def process_lead(lead: LeadRecord) -> LeadEnrichment:
        return await enrich_lead(
            lead,
            places_client,
            demographics_client=demographics_client,
            website_signals_client=website_signals_client,
            legacy=legacy_by_lead.get(id(lead)),
        )

    try:
        results = await resolve_batch(leads, process_lead, concurrency=CONCURRENCY)

        output_path = OUTPUT_CSV
        if os.path.exists(output_path):
            os.remove(output_path)
        with open(output_path, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(OUTPUT_COLUMNS)
            for result in results:
                writer.writerow(result_row(result))
        logger.info(f"💾 Wrote {len(results)} rows to {output_path}")
    finally:
        # Cleanup: close client sessions to prevent unclosed connector warnings
        await places_client.close()
        await website_signals_client.close()
        if demographics_client is not None:
            await demographics_client.close()


if __name__ == "__main__":
    asyncio.run(main())
