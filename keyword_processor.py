"""
KEYWORD PROCESSOR
=================
Turns the raw keyword rows returned by the research model into typed
KeywordRecord objects and builds the tiered views shown on the dashboard.

The model is asked for tier / competition / intent labels, but it does not
always use the exact wording, so every label is normalised here.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional

from studio_types import Competition, Intent, KeywordRecord, Tier

KEYWORD_BATCH_SIZE = 20
TOP_CHART_SIZE = 8


def normalize_tier(label: Any) -> Tier:
    """Case-insensitive substring match; anything unrecognised is long-tail."""
    value = str(label or "").lower()
    if "tier 1" in value:
        return Tier.TIER_1
    if "tier 2" in value:
        return Tier.TIER_2
    if "tier 3" in value or "long-tail" in value:
        return Tier.TIER_3
    return Tier.TIER_3


def normalize_competition(label: Any) -> Competition:
    value = str(label or "").strip().lower()
    for comp in Competition:
        if value.startswith(comp.value.lower()):
            return comp
    return Competition.MEDIUM


def normalize_intent(label: Any) -> Intent:
    value = str(label or "").strip().lower()
    for intent in Intent:
        if intent.value.lower() in value:
            return intent
    return Intent.COMMERCIAL


def _to_volume(value: Any) -> int:
    try:
        vol = int(round(float(value)))
    except (TypeError, ValueError):
        return 0
    return max(0, min(100, vol))


def _to_cpc(value: Any) -> float:
    if isinstance(value, str):
        value = value.replace("$", "").replace(",", "").strip()
    try:
        cpc = float(value)
    except (TypeError, ValueError):
        return 0.0
    return cpc if cpc >= 0 else 0.0


def coerce_keyword_record(row: Any) -> Optional[KeywordRecord]:
    """Build a KeywordRecord from one model row, or None if it has no keyword."""
    if not isinstance(row, dict):
        return None
    keyword = str(row.get("keyword") or "").strip()
    if not keyword:
        return None
    tier_label = str(row.get("tier") or "").strip()
    return KeywordRecord(
        keyword=keyword,
        search_volume=_to_volume(row.get("searchVolume")),
        competition=normalize_competition(row.get("competition")),
        cpc=_to_cpc(row.get("cpc")),
        intent=normalize_intent(row.get("intent")),
        tier=normalize_tier(tier_label),
        tier_label=tier_label,
    )


def coerce_keyword_batch(payload: Any, limit: int = KEYWORD_BATCH_SIZE) -> List[KeywordRecord]:
    """Accept a bare array or an object wrapping ``keywords``; keep at most ``limit``."""
    if isinstance(payload, dict):
        payload = payload.get("keywords") or payload.get("data") or []
    if not isinstance(payload, list):
        return []

    records: List[KeywordRecord] = []
    for row in payload:
        rec = coerce_keyword_record(row)
        if rec is not None:
            records.append(rec)
        if len(records) >= limit:
            break
    return records


def group_by_tier(records: Iterable[KeywordRecord]) -> "OrderedDict[Tier, List[KeywordRecord]]":
    """Three buckets in display order. Every record lands in exactly one."""
    groups: "OrderedDict[Tier, List[KeywordRecord]]" = OrderedDict((t, []) for t in Tier)
    for rec in records:
        groups[rec.tier].append(rec)
    return groups


def top_by_volume(records: Iterable[KeywordRecord], n: int = TOP_CHART_SIZE) -> List[KeywordRecord]:
    return sorted(records, key=lambda r: r.search_volume, reverse=True)[:n]


def keyword_stats(records: List[KeywordRecord]) -> Dict[str, Any]:
    count = len(records)
    high = sum(1 for r in records if r.competition is Competition.HIGH)
    avg_cpc = sum(r.cpc for r in records) / count if count else 0.0
    return {
        "count": count,
        "high_competition": high,
        "avg_cpc": round(avg_cpc, 2),
    }


def copy_text(records: Iterable[KeywordRecord]) -> str:
    """Clipboard text: one ``keyword (tier)`` per line."""
    return "\n".join(f"{r.keyword} ({r.tier_label or r.tier.value})" for r in records)
