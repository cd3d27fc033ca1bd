"""
Similarity ranking for "similar listings" suggestions.

A candidate scores one point for each attribute it shares with the reference:
same city, same type, price within 20% either way, same area, same bedroom count.
"""

from decimal import Decimal
from typing import List, Sequence, Tuple
from app.models.property import Property

PRICE_LOWER = Decimal("0.8")
PRICE_UPPER = Decimal("1.2")


def similarity_score(reference: Property, candidate: Property) -> int:
    """Number of matching attributes between two listings."""
    score = 0

    if candidate.city == reference.city:
        score += 1

    if candidate.property_type == reference.property_type:
        score += 1

    if reference.price is not None and candidate.price is not None:
        reference_price = Decimal(reference.price)
        if reference_price * PRICE_LOWER <= Decimal(candidate.price) <= reference_price * PRICE_UPPER:
            score += 1

    # Two missing values count as equal
    if candidate.area == reference.area:
        score += 1

    if candidate.bedrooms == reference.bedrooms:
        score += 1

    return score


def rank_similar(
    reference: Property,
    candidates: Sequence[Property],
    limit: int = 4
) -> List[Property]:
    """
    Rank candidates by similarity to the reference.

    The reference itself is skipped, zero scores are dropped and ties keep
    the candidates' input order.

    Returns:
        At most ``limit`` listings, most similar first
    """
    scored: List[Tuple[int, Property]] = [
        (similarity_score(reference, candidate), candidate)
        for candidate in candidates
        if candidate.id != reference.id
    ]

    # sorted() is stable, so equal scores stay in input order
    scored = sorted(scored, key=lambda pair: pair[0], reverse=True)

    return [candidate for score, candidate in scored if score > 0][:limit]
