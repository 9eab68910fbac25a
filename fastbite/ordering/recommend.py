# fastbite/ordering/recommend.py
"""
Additive heuristic product scoring.

Every signal a product matches adds its weight; the confidence shown to the
customer is the score capped just below 1. There is no learning step.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..schemas import Product
from .nlp import basic_normalize, extract_keywords

SIGNAL_WEIGHTS: Dict[str, float] = {
    "direct_match": 0.95,
    "purchased": 0.9,
    "recently_viewed": 0.8,
    "favorite_category": 0.75,
    "liked": 0.7,
    "spice_match": 0.25,
    "featured": 0.2,
    "well_rated": 0.15,
}

REASONS: Dict[str, str] = {
    "direct_match": "Matches your request",
    "purchased": "You ordered this before",
    "recently_viewed": "You looked at this recently",
    "favorite_category": "From a category you like",
    "liked": "One of your favourites",
    "spice_match": "Fits your spice preference",
    "featured": "Popular pick",
    "well_rated": "Highly rated by other customers",
}
POPULAR_REASON = "Popular with other customers"

WELL_RATED = 4.5
MAX_CONFIDENCE = 0.99
POPULAR_CONFIDENCE = 0.5


class UserProfile(BaseModel):
    viewed_ids: List[int] = Field(default_factory=list)
    purchased_ids: List[int] = Field(default_factory=list)
    liked_ids: List[int] = Field(default_factory=list)
    favorite_categories: List[str] = Field(default_factory=list)
    dietary: List[str] = Field(default_factory=list)
    spice_preference: Optional[str] = None  # mild | medium | hot


class ScoredProduct(BaseModel):
    product: Product
    score: float
    confidence: float
    reasoning: str
    signals: List[str] = Field(default_factory=list)


def is_available(product: Product) -> bool:
    return product.stock > 0 and product.is_active and not product.is_deleted


def allowed_by_diet(product: Product, profile: UserProfile) -> bool:
    diet = {d.lower() for d in profile.dietary}
    if diet & {"vegetarian", "vegan"}:
        return product.is_vegetarian or "vegetarian" in product.tag_list
    return True


def is_spicy(product: Product) -> bool:
    level = (product.spice_level or "").lower()
    return level in {"hot", "spicy", "medium"} or "spicy" in product.tag_list or "cay" in product.tag_list


def _query_terms(query: str) -> List[str]:
    terms = extract_keywords(query)
    if terms:
        return terms
    q = basic_normalize(query)
    return [q] if q else []


def matches_query(product: Product, query: str | None) -> bool:
    if not query:
        return False
    haystack = " ".join(
        [product.name, product.description or "", product.category_name, " ".join(product.tag_list)]
    ).lower()
    return any(term in haystack for term in _query_terms(query))


def _signals(product: Product, profile: UserProfile, query: str | None) -> List[str]:
    favorites = {c.lower() for c in profile.favorite_categories}
    spice = (profile.spice_preference or "").lower()
    found: List[str] = []

    if matches_query(product, query):
        found.append("direct_match")
    if product.id in profile.purchased_ids:
        found.append("purchased")
    if product.id in profile.viewed_ids:
        found.append("recently_viewed")
    if product.category_name.lower() in favorites:
        found.append("favorite_category")
    if product.id in profile.liked_ids:
        found.append("liked")
    if (spice == "hot" and is_spicy(product)) or (spice == "mild" and not is_spicy(product)):
        found.append("spice_match")
    if product.is_featured:
        found.append("featured")
    if product.rating >= WELL_RATED:
        found.append("well_rated")
    return found


def score_product(product: Product, profile: UserProfile | None = None, query: str | None = None) -> ScoredProduct:
    profile = profile or UserProfile()
    signals = _signals(product, profile, query)
    score = sum(SIGNAL_WEIGHTS[s] for s in signals)
    if signals:
        strongest = max(signals, key=lambda s: SIGNAL_WEIGHTS[s])
        reasoning = REASONS[strongest]
        confidence = max(POPULAR_CONFIDENCE, min(score, MAX_CONFIDENCE))
    else:
        reasoning = POPULAR_REASON
        confidence = POPULAR_CONFIDENCE
    return ScoredProduct(
        product=product,
        score=round(score, 4),
        confidence=round(confidence, 4),
        reasoning=reasoning,
        signals=signals,
    )


def recommend(
    products: List[Product],
    profile: UserProfile | None = None,
    query: str | None = None,
    limit: int = 5,
) -> List[ScoredProduct]:
    profile = profile or UserProfile()
    scored = [
        score_product(p, profile, query)
        for p in products
        if is_available(p) and allowed_by_diet(p, profile)
    ]
    scored.sort(key=lambda s: (s.score, s.product.rating), reverse=True)
    return scored[:limit]
