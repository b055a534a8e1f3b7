import asyncio
import logging
from dataclasses import dataclass, field, asdict

from .analyzer import PreferenceProfile, analyze
from .aggregator import search_candidates
from .tmdb import CatalogMovie, Review, Video, WatchProvider, TMDbClient, build_image_url
from .config import (
    BASE_SCORE,
    VOTE_AVERAGE_MULTIPLIER,
    VOTE_SCORE_CAP,
    POPULARITY_DIVISOR,
    POPULARITY_SCORE_CAP,
    MAX_MATCH_PERCENTAGE,
    MIN_MATCH_PERCENTAGE,
    MAX_RECOMMENDATIONS,
)

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentBundle:
    """Per-movie side data fetched alongside scoring."""
    providers: list[WatchProvider] = field(default_factory=list)
    reviews: list[Review] = field(default_factory=list)
    trailer_key: str | None = None


@dataclass
class Recommendation:
    id: int
    title: str
    year: int | None
    plot: str
    rating: float
    match_percentage: int
    poster_url: str = ""
    backdrop_url: str = ""
    streaming_platforms: list[str] = field(default_factory=list)
    streaming_logos: list[str] = field(default_factory=list)
    reviews: list[Review] = field(default_factory=list)
    trailer_key: str | None = None
    intensity: int = 5
    emotions: list[str] = field(default_factory=list)
    # Matched genres/themes are not folded into the output; always empty
    genres: list[str] = field(default_factory=list)
    themes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def _release_year(release_date: str) -> int | None:
    try:
        return int(release_date[:4])
    except (TypeError, ValueError):
        return None


def compute_match_percentage(movie: CatalogMovie) -> int:
    """
    Heuristic match score in [0, 100].

    60 base, plus up to 20 from the vote average and up to 20 from
    popularity, capped at 100 and rounded to the nearest integer
    (halves go to the even neighbour, so 78.5 -> 78).
    """
    score = BASE_SCORE
    score += min(VOTE_SCORE_CAP, movie.vote_average * VOTE_AVERAGE_MULTIPLIER)
    score += min(POPULARITY_SCORE_CAP, movie.popularity / POPULARITY_DIVISOR)
    return round(min(MAX_MATCH_PERCENTAGE, score))


def pick_trailer_key(videos: list[Video]) -> str | None:
    """Key of the first YouTube trailer, if any."""
    for video in videos:
        if video.site == "YouTube" and video.type == "Trailer":
            return video.key
    return None


async def enrich(client: TMDbClient, movie: CatalogMovie) -> EnrichmentBundle:
    """Fetch providers, reviews and videos for one movie concurrently."""
    providers, reviews, videos = await asyncio.gather(
        client.fetch_watch_providers(movie.id),
        client.fetch_reviews(movie.id),
        client.fetch_videos(movie.id),
    )

    for label, result in (("watch providers", providers), ("reviews", reviews), ("videos", videos)):
        if not result.ok:
            logger.warning(f"No {label} for '{movie.title}' ({movie.id}): {result.error}")

    return EnrichmentBundle(
        providers=providers.value,
        reviews=reviews.value,
        trailer_key=pick_trailer_key(videos.value),
    )


def build_recommendation(
    movie: CatalogMovie, bundle: EnrichmentBundle, profile: PreferenceProfile
) -> Recommendation:
    return Recommendation(
        id=movie.id,
        title=movie.title,
        year=_release_year(movie.release_date),
        plot=movie.overview,
        rating=movie.vote_average,
        match_percentage=compute_match_percentage(movie),
        poster_url=build_image_url(movie.poster_path, "poster"),
        backdrop_url=build_image_url(movie.backdrop_path, "backdrop"),
        streaming_platforms=[p.name for p in bundle.providers],
        streaming_logos=[p.logo_url for p in bundle.providers],
        reviews=list(bundle.reviews),
        trailer_key=bundle.trailer_key,
        intensity=profile.intensity,
        emotions=sorted(profile.emotions),
    )


def rank(recommendations: list[Recommendation], limit: int = MAX_RECOMMENDATIONS) -> list[Recommendation]:
    """
    Drop weak matches, order by match percentage and truncate.

    Only scores strictly above MIN_MATCH_PERCENTAGE survive. The sort is
    stable, so ties keep candidate order.
    """
    kept = [r for r in recommendations if r.match_percentage > MIN_MATCH_PERCENTAGE]
    kept.sort(key=lambda r: r.match_percentage, reverse=True)
    return kept[:limit]


async def score_and_rank(
    client: TMDbClient, candidates: list[CatalogMovie], profile: PreferenceProfile
) -> list[Recommendation]:
    """Enrich every candidate concurrently, score, and return the ranked list."""
    bundles = await asyncio.gather(*(enrich(client, movie) for movie in candidates))
    recommendations = [
        build_recommendation(movie, bundle, profile)
        for movie, bundle in zip(candidates, bundles)
    ]
    ranked = rank(recommendations)
    logger.debug(f"Ranked {len(ranked)} of {len(recommendations)} scored candidates")
    return ranked


async def get_recommendations(text: str, client: TMDbClient | None = None) -> list[Recommendation]:
    """
    Full pipeline: analyze the text, gather candidates and rank them.

    When no client is given, one is opened from configuration and closed
    afterwards. Upstream outages yield an empty list; malformed catalog
    responses raise MalformedResponseError.
    """
    profile = analyze(text)

    if client is None:
        async with TMDbClient() as owned_client:
            return await _recommend_with_client(owned_client, text, profile)
    return await _recommend_with_client(client, text, profile)


async def _recommend_with_client(
    client: TMDbClient, text: str, profile: PreferenceProfile
) -> list[Recommendation]:
    candidates = await search_candidates(client, text, profile.genres)
    if not candidates:
        return []
    return await score_and_rank(client, candidates, profile)


def recommend(text: str) -> list[Recommendation]:
    """Synchronous wrapper around get_recommendations."""
    return asyncio.run(get_recommendations(text))
