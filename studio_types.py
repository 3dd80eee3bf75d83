"""
STUDIO TYPES
============
Plain data records passed between the generation stages:
keyword research -> listing copy -> scene images -> launch plan -> video.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from errors import InvalidInputError


class Language(Enum):
    """Marketplace languages offered by the studio."""
    ENGLISH = "English"
    JAPANESE = "Japanese"
    GERMAN = "German"
    FRENCH = "French"
    SPANISH = "Spanish"
    ITALIAN = "Italian"

    @classmethod
    def parse(cls, value: Union[str, "Language", None]) -> "Language":
        if isinstance(value, Language):
            return value
        v = (value or "").strip().lower()
        for lang in cls:
            if lang.value.lower() == v or lang.name.lower() == v:
                return lang
        raise InvalidInputError(f"Unsupported language: {value!r}")


class Tier(Enum):
    TIER_1 = "Tier 1 (Head)"
    TIER_2 = "Tier 2 (Middle)"
    TIER_3 = "Tier 3 (Long-tail)"


class Competition(Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Intent(Enum):
    COMMERCIAL = "Commercial"
    INFORMATIONAL = "Informational"
    TRANSACTIONAL = "Transactional"


# ---------------------------------------------------------------------------
# Keyword research
# ---------------------------------------------------------------------------

@dataclass
class KeywordRecord:
    keyword: str
    search_volume: int = 0          # 0-100 relative estimate
    competition: Competition = Competition.MEDIUM
    cpc: float = 0.0
    intent: Intent = Intent.COMMERCIAL
    tier: Tier = Tier.TIER_3
    tier_label: str = ""            # raw label as returned by the model

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyword": self.keyword,
            "searchVolume": self.search_volume,
            "competition": self.competition.value,
            "cpc": self.cpc,
            "intent": self.intent.value,
            "tier": self.tier.value,
            "tierLabel": self.tier_label,
        }


@dataclass
class GroundingSource:
    title: str
    url: str

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "url": self.url}


@dataclass
class KeywordResearchResult:
    keywords: List[KeywordRecord] = field(default_factory=list)
    sources: List[GroundingSource] = field(default_factory=list)

    @property
    def keyword_strings(self) -> List[str]:
        return [k.keyword for k in self.keywords]


# ---------------------------------------------------------------------------
# Listing copy
# ---------------------------------------------------------------------------

BULLET_COUNT = 5


@dataclass
class ListingContent:
    title: str
    bullets: List[str] = field(default_factory=list)

    def __post_init__(self):
        bullets = [str(b or "").strip() for b in list(self.bullets or [])[:BULLET_COUNT]]
        while len(bullets) < BULLET_COUNT:
            bullets.append("")
        self.bullets = bullets

    def edit_bullet(self, index: int, text: str) -> None:
        if not 0 <= index < BULLET_COUNT:
            raise IndexError(f"bullet index {index} out of range")
        self.bullets[index] = text

    @property
    def missing_bullets(self) -> int:
        return sum(1 for b in self.bullets if not b)

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "bullets": list(self.bullets)}


# ---------------------------------------------------------------------------
# Scene images
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SceneSpec:
    id: int
    label: str
    prompt_suffix: str


@dataclass
class GeneratedImage:
    id: int
    label: str
    image_url: Optional[str] = None
    is_loading: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "imageUrl": self.image_url,
            "isLoading": self.is_loading,
        }


@dataclass(frozen=True)
class ImageSuccess:
    url: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ImageFailed:
    reason: str

    @property
    def ok(self) -> bool:
        return False


ImageResult = Union[ImageSuccess, ImageFailed]


@dataclass(frozen=True)
class SceneImageResult:
    id: int
    result: ImageResult

    @property
    def ok(self) -> bool:
        return self.result.ok

    @property
    def image_url(self) -> str:
        """Populated URL, or ``""`` when the scene failed."""
        return self.result.url if isinstance(self.result, ImageSuccess) else ""


@dataclass(frozen=True)
class InlineImage:
    data: bytes
    mime_type: str = "image/png"


@dataclass(frozen=True)
class ReferenceImage:
    data: bytes
    mime_type: str = "image/png"


# ---------------------------------------------------------------------------
# Launch plan
# ---------------------------------------------------------------------------

def _str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [_str(v) for v in value if _str(v)]
    s = _str(value)
    return [s] if s else []


@dataclass
class PPCBlock:
    budget: str = ""
    cpc: str = ""
    strategy: str = ""
    targets: List[str] = field(default_factory=list)
    creative: str = ""
    roadmap60: str = ""

    @classmethod
    def from_dict(cls, obj: Any) -> "PPCBlock":
        if not isinstance(obj, dict):
            return cls()
        return cls(
            budget=_str(obj.get("budget")),
            cpc=_str(obj.get("cpc")),
            strategy=_str(obj.get("strategy")),
            targets=_str_list(obj.get("targets")),
            creative=_str(obj.get("creative")),
            roadmap60=_str(obj.get("roadmap60")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "budget": self.budget,
            "cpc": self.cpc,
            "strategy": self.strategy,
            "targets": list(self.targets),
            "creative": self.creative,
            "roadmap60": self.roadmap60,
        }


@dataclass
class PPCDetail:
    auto_ads: PPCBlock = field(default_factory=PPCBlock)
    manual_exact: PPCBlock = field(default_factory=PPCBlock)
    manual_phrase: PPCBlock = field(default_factory=PPCBlock)
    brand_ads: PPCBlock = field(default_factory=PPCBlock)

    @classmethod
    def from_dict(cls, obj: Any) -> "PPCDetail":
        obj = obj if isinstance(obj, dict) else {}
        return cls(
            auto_ads=PPCBlock.from_dict(obj.get("autoAds")),
            manual_exact=PPCBlock.from_dict(obj.get("manualExact")),
            manual_phrase=PPCBlock.from_dict(obj.get("manualPhrase")),
            brand_ads=PPCBlock.from_dict(obj.get("brandAds")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "autoAds": self.auto_ads.to_dict(),
            "manualExact": self.manual_exact.to_dict(),
            "manualPhrase": self.manual_phrase.to_dict(),
            "brandAds": self.brand_ads.to_dict(),
        }


@dataclass
class LaunchDayPlan:
    day_range: str
    focus: str = ""
    actions: List[str] = field(default_factory=list)
    budget: str = ""
    metrics: List[str] = field(default_factory=list)
    ppc_detail: PPCDetail = field(default_factory=PPCDetail)

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "LaunchDayPlan":
        return cls(
            day_range=_str(obj.get("dayRange")),
            focus=_str(obj.get("focus")),
            actions=_str_list(obj.get("actions")),
            budget=_str(obj.get("budget")),
            metrics=_str_list(obj.get("metrics")),
            ppc_detail=PPCDetail.from_dict(obj.get("ppcDetail")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dayRange": self.day_range,
            "focus": self.focus,
            "actions": list(self.actions),
            "budget": self.budget,
            "metrics": list(self.metrics),
            "ppcDetail": self.ppc_detail.to_dict(),
        }


@dataclass
class AdStrategyNode:
    """One node of the campaign portfolio tree. Read-only once parsed."""
    name: str
    budget: Optional[str] = None
    cpc: Optional[str] = None
    strategy: Optional[str] = None
    targets: List[str] = field(default_factory=list)
    children: List["AdStrategyNode"] = field(default_factory=list)

    @classmethod
    def from_dict(cls, obj: Any) -> "AdStrategyNode":
        if not isinstance(obj, dict):
            return cls(name=_str(obj) or "Campaign Portfolio")
        children = obj.get("children") or []
        return cls(
            name=_str(obj.get("name")) or "Unnamed",
            budget=_str(obj.get("budget")) or None,
            cpc=_str(obj.get("cpc")) or None,
            strategy=_str(obj.get("strategy")) or None,
            targets=_str_list(obj.get("targets")),
            children=[cls.from_dict(c) for c in children if isinstance(c, dict)],
        )

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def walk(self, depth: int = 0) -> Iterator[Tuple[int, "AdStrategyNode"]]:
        """Depth-first, parent before children."""
        yield depth, self
        for child in self.children:
            yield from child.walk(depth + 1)

    def leaves(self) -> List["AdStrategyNode"]:
        return [node for _, node in self.walk() if node.is_leaf]

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name}
        if self.budget is not None:
            out["budget"] = self.budget
        if self.cpc is not None:
            out["cpc"] = self.cpc
        if self.strategy is not None:
            out["strategy"] = self.strategy
        if self.targets:
            out["targets"] = list(self.targets)
        if self.children:
            out["children"] = [c.to_dict() for c in self.children]
        return out


@dataclass
class LaunchPlan:
    plan: List[LaunchDayPlan]
    ad_strategy: AdStrategyNode

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plan": [p.to_dict() for p in self.plan],
            "adStrategy": self.ad_strategy.to_dict(),
        }
