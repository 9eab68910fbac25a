# fastbite/services/reviews.py
from __future__ import annotations

from typing import Any, Dict, List, Tuple

from ..schemas import Review
from .client import ApiClient


def _check_rating(rating: int) -> None:
    if not 1 <= int(rating) <= 5:
        raise ValueError("Rating must be between 1 and 5")


async def get_reviews(api: ApiClient, product_id: int) -> Tuple[List[Review], float]:
    data = await api.get(f"/products/{product_id}/reviews", auth=False, default_error="Could not load reviews")
    reviews = [Review.model_validate(r) for r in data.get("reviews") or []]
    return reviews, float(data.get("avgRating") or 0.0)


async def create_review(api: ApiClient, product_id: int, rating: int, comment: str) -> Dict[str, Any]:
    """Returns the backend's ``{message, review, updated?}``; a second review updates the first."""
    _check_rating(rating)
    return await api.post(
        f"/products/{product_id}/reviews",
        json={"rating": rating, "comment": comment},
        default_error="Could not create review",
    )


async def update_review(api: ApiClient, review_id: int, rating: int | None = None, comment: str | None = None) -> Review:
    body: Dict[str, Any] = {}
    if rating is not None:
        _check_rating(rating)
        body["rating"] = rating
    if comment is not None:
        body["comment"] = comment
    data = await api.put(f"/reviews/{review_id}", json=body, default_error="Could not update review")
    return Review.model_validate(data.get("review"))


async def delete_review(api: ApiClient, review_id: int) -> None:
    await api.delete(f"/reviews/{review_id}", default_error="Could not delete review")
