"""
OUTPUT WRITER
=============
Exports session results to disk:
  - tiered keyword table as CSV (Tier, Keyword, Volume, Competition, CPC, Intent)
  - populated scene images decoded from their data URLs
  - the rendered video, fetched with its credential-bearing URI
  - listing / launch plan as JSON
"""

from __future__ import annotations

import base64
import json
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd
import requests

from keyword_processor import group_by_tier
from studio_types import GeneratedImage, KeywordRecord

KEYWORD_COLUMNS = ["Tier", "Keyword", "Volume", "Competition", "CPC", "Intent"]

_DATA_URL = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.+)$", re.DOTALL)


def _safe_name(text: str, max_len: int = 60) -> str:
    s = re.sub(r"[^\w\-]+", "-", (text or "").strip(), flags=re.UNICODE).strip("-")
    return (s or "image")[:max_len]


def keyword_frame(records: Iterable[KeywordRecord]) -> pd.DataFrame:
    """One row per keyword, grouped in tier order."""
    rows = []
    for tier, group in group_by_tier(records).items():
        for r in group:
            rows.append({
                "Tier": r.tier_label or tier.value,
                "Keyword": r.keyword,
                "Volume": r.search_volume,
                "Competition": r.competition.value,
                "CPC": r.cpc,
                "Intent": r.intent.value,
            })
    return pd.DataFrame(rows, columns=KEYWORD_COLUMNS)


def keywords_csv(records: Iterable[KeywordRecord]) -> str:
    return keyword_frame(records).to_csv(index=False)


def export_keywords_csv(records: Iterable[KeywordRecord], output_path: str) -> str:
    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    keyword_frame(records).to_csv(out, index=False, encoding="utf-8")
    print(f"      💾 Keywords saved: {out}")
    return str(out)


def decode_data_url(url: str) -> Optional[bytes]:
    m = _DATA_URL.match(url or "")
    if not m:
        return None
    return base64.b64decode(m.group("data"))


def save_scene_images(images: Iterable[GeneratedImage], output_dir: str, prefix: str) -> List[str]:
    """Write every populated cell as ``<prefix>-<label>.png``; empty cells are skipped."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    saved = []
    for idx, img in enumerate(images):
        data = decode_data_url(img.image_url or "")
        if data is None:
            continue
        path = out / f"{prefix}-{_safe_name(img.label or str(idx))}.png"
        path.write_bytes(data)
        saved.append(str(path))
    print(f"      💾 Saved {len(saved)} {prefix} image(s) to {out}")
    return saved


def download_video(video_url: str, output_path: str, timeout: int = 120) -> str:
    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    resp = requests.get(video_url, timeout=timeout, stream=True)
    resp.raise_for_status()
    with open(out, "wb") as f:
        for chunk in resp.iter_content(chunk_size=1 << 16):
            if chunk:
                f.write(chunk)
    print(f"      💾 Video saved: {out}")
    return str(out)


def write_json(payload: Dict[str, Any], output_path: str) -> str:
    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
    return str(out)
