"""Financial concept keywords used to match questions to measures."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

# =============================================================================
# CONCEPT GROUPS
# =============================================================================
# Canonical concept -> Vietnamese/English synonyms and abbreviations.
# Matching is plain substring matching on lowercased text.

CONCEPT_KEYWORDS: Mapping[str, frozenset[str]] = MappingProxyType({
    "doanh_thu": frozenset({"doanh thu", "revenue", "sales", "thu", "dt"}),
    "loi_nhuan": frozenset({"lợi nhuận", "profit", "lnst", "lntt", "lãi"}),
    "gia_von": frozenset({"giá vốn", "cogs", "cost", "gv"}),
    "tai_san": frozenset({"tài sản", "assets", "ts"}),
    "von": frozenset({"vốn", "equity", "capital", "vcsh"}),
    "ros": frozenset({"ros", "return on sales", "tỷ suất", "lợi nhuận/doanh thu"}),
    "roa": frozenset({"roa", "return on assets", "lợi nhuận/tài sản"}),
    "roe": frozenset({"roe", "return on equity", "lợi nhuận/vốn"}),
    "bien": frozenset({"biên", "margin", "gross margin", "biên lợi nhuận"}),
    "chi_phi": frozenset({"chi phí", "expense", "cost", "cp"}),
})


def contains_any(text: str, synonyms: frozenset[str]) -> bool:
    return any(syn in text for syn in synonyms)


def detect_concepts(text: str) -> list[str]:
    """Concepts with at least one synonym in the (lowercased) text."""
    q = text.lower()
    return [concept for concept, synonyms in CONCEPT_KEYWORDS.items() if contains_any(q, synonyms)]
