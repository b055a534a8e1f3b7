import asyncio
import logging
from typing import Iterable

from .tmdb import CatalogMovie, TMDbClient

logger = logging.getLogger(__name__)


def merge_candidates(*result_lists: Iterable[CatalogMovie]) -> list[CatalogMovie]:
    """
    Concatenate result lists in order, keeping the first occurrence of each movie id.
    """
    seen: set[int] = set()
    merged: list[CatalogMovie] = []
    for results in result_lists:
        for movie in results:
            if movie.id in seen:
                continue
            seen.add(movie.id)
            merged.append(movie)
    return merged


async def search_candidates(client: TMDbClient, text: str, genres: Iterable[str]) -> list[CatalogMovie]:
    """
    Gather candidates from genre discovery and free-text search.

    Discovery results come first, then search-only results in search order.
    If the genre lookup or either query fails, the whole aggregation yields
    an empty list rather than partial results.
    """
    lookup = await client.resolve_genres()
    if not lookup.ok:
        logger.warning(f"Genre lookup failed ({lookup.error}); returning no candidates")
        return []

    genre_ids = []
    for name in genres:
        genre_id = lookup.value.get(name.lower())
        if genre_id is None:
            logger.debug(f"No catalog genre named '{name}', skipping")
            continue
        genre_ids.append(genre_id)

    discovered, searched = await asyncio.gather(
        client.discover_by_genres(genre_ids),
        client.search_by_text(text),
    )

    for label, result in (("discover", discovered), ("search", searched)):
        if not result.ok:
            logger.warning(f"Catalog {label} failed ({result.error}); returning no candidates")
            return []

    candidates = merge_candidates(discovered.value, searched.value)
    logger.info(
        f"Found {len(candidates)} candidates "
        f"({len(discovered.value)} discovered, {len(searched.value)} searched)"
    )
    return candidates
