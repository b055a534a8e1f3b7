import asyncio
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Generic, Mapping, TypeVar

import httpx

from .config import (
    TMDB_API_KEY,
    TMDB_BASE_URL,
    TMDB_IMAGE_BASE_URL,
    IMAGE_SIZES,
    PROVIDER_LOGO_SIZE,
    HTTP_TIMEOUT,
    DEFAULT_MAX_CONCURRENT,
    MAX_HTTP_RETRIES,
    DEFAULT_RETRY_AFTER,
    CATALOG_LANGUAGE,
    WATCH_REGION,
    DISCOVER_SORT_BY,
    DISCOVER_MIN_VOTE_COUNT,
    MAX_REVIEWS,
    PROVIDER_OFFER_TYPES,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')


class MalformedResponseError(ValueError):
    """Raised when the catalog answers with a payload we cannot interpret."""


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """
    Outcome of a single catalog call.

    A failed fetch still carries an empty ``value`` so callers can tell
    "legitimately empty" apart from "fetch failed" via ``ok`` and ``error``.
    """
    value: T
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, error: str, default: T) -> "FetchResult[T]":
        return cls(value=default, error=error)


@dataclass(frozen=True)
class CatalogMovie:
    id: int
    title: str
    overview: str
    release_date: str
    poster_path: str | None
    backdrop_path: str | None
    vote_average: float
    popularity: float
    genre_ids: tuple[int, ...] = ()

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "CatalogMovie":
        """Build from a TMDB movie result. Only ``id`` is mandatory."""
        movie_id = data.get("id") if isinstance(data, Mapping) else None
        if not isinstance(movie_id, int) or isinstance(movie_id, bool):
            raise MalformedResponseError(f"Movie result without integer id: {data!r:.200}")
        return cls(
            id=movie_id,
            title=data.get("title") or "",
            overview=data.get("overview") or "",
            release_date=data.get("release_date") or "",
            poster_path=data.get("poster_path") or None,
            backdrop_path=data.get("backdrop_path") or None,
            vote_average=float(data.get("vote_average") or 0.0),
            popularity=float(data.get("popularity") or 0.0),
            genre_ids=tuple(data.get("genre_ids") or ()),
        )


@dataclass(frozen=True)
class WatchProvider:
    name: str
    logo_url: str


@dataclass(frozen=True)
class Review:
    author: str
    content: str
    created_at: str
    rating: float | None = None

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Review":
        rating = data.get("rating")
        if rating is None:
            rating = (data.get("author_details") or {}).get("rating")
        return cls(
            author=data.get("author") or "",
            content=data.get("content") or "",
            created_at=data.get("created_at") or "",
            rating=float(rating) if rating is not None else None,
        )


@dataclass(frozen=True)
class Video:
    key: str
    name: str
    type: str
    site: str

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Video":
        return cls(
            key=data.get("key") or "",
            name=data.get("name") or "",
            type=data.get("type") or "",
            site=data.get("site") or "",
        )


def build_image_url(path: str | None, variant: str = "poster") -> str:
    """Return a full image URL for a poster/backdrop path, or '' if there is no path."""
    if variant not in IMAGE_SIZES:
        raise ValueError(f"Unknown image variant: {variant!r} (expected one of {sorted(IMAGE_SIZES)})")
    if not path:
        return ""
    return f"{TMDB_IMAGE_BASE_URL}/{IMAGE_SIZES[variant]}{path}"


def _provider_logo_url(path: str | None) -> str:
    if not path:
        return ""
    return f"{TMDB_IMAGE_BASE_URL}/{PROVIDER_LOGO_SIZE}{path}"


def _parse_retry_after(header: str | None) -> int:
    try:
        return max(0, int(header)) if header is not None else DEFAULT_RETRY_AFTER
    except ValueError:
        return DEFAULT_RETRY_AFTER


class GenreLookupCache:
    """
    Process-wide genre name -> id lookup, populated at most once.

    Concurrent first callers all await the same in-flight task. A successful
    lookup is kept for the lifetime of the process; a failed one is not
    cached so the next caller retries.
    """

    def __init__(self):
        self._lookup: Mapping[str, int] | None = None
        self._inflight: asyncio.Task | None = None

    @property
    def loaded(self) -> bool:
        return self._lookup is not None

    async def get(
        self, fetch: Callable[[], Awaitable[FetchResult[dict[str, int]]]]
    ) -> FetchResult[Mapping[str, int]]:
        if self._lookup is not None:
            return FetchResult(self._lookup)

        task = self._inflight
        if task is None:
            task = asyncio.ensure_future(self._populate(fetch))
            self._inflight = task
        # Shield so one cancelled waiter does not cancel the shared fetch
        return await asyncio.shield(task)

    async def _populate(self, fetch) -> FetchResult[Mapping[str, int]]:
        try:
            result = await fetch()
            if not result.ok:
                return FetchResult.failure(result.error, MappingProxyType({}))
            self._lookup = MappingProxyType(dict(result.value))
            logger.debug(f"Cached {len(self._lookup)} catalog genres")
            return FetchResult(self._lookup)
        finally:
            self._inflight = None

    def reset(self) -> None:
        """Forget the cached lookup (tests only; production never invalidates)."""
        self._lookup = None
        self._inflight = None


GENRE_LOOKUP_CACHE = GenreLookupCache()


class TMDbClient:
    """Async TMDB client with bounded concurrency and soft-failure results."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = TMDB_BASE_URL,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        timeout: float = HTTP_TIMEOUT,
        genre_cache: GenreLookupCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = TMDB_API_KEY if api_key is None else api_key
        if not self.api_key:
            raise ValueError("TMDB API key is not configured (set TMDB_API_KEY)")
        self.base_url = base_url
        self.timeout = timeout
        self.semaphore = asyncio.Semaphore(max_concurrent)
        self.genre_cache = genre_cache if genre_cache is not None else GENRE_LOOKUP_CACHE
        self._transport = transport
        self.client: httpx.AsyncClient | None = None

    async def __aenter__(self):
        """Async context manager entry."""
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            params={"api_key": self.api_key},
            headers={"Accept": "application/json", "User-Agent": "moviemood/1.0"},
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self.client:
            await self.client.aclose()
            self.client = None
        return False

    async def _get_json(self, path: str, params: dict | None = None) -> FetchResult[dict | None]:
        """
        GET a catalog endpoint and decode its JSON body.

        Network and HTTP failures become a failed FetchResult. An undecodable
        body raises MalformedResponseError.
        """
        if not self.client:
            raise RuntimeError("TMDbClient must be used as an async context manager")

        async with self.semaphore:
            for attempt in range(MAX_HTTP_RETRIES):
                try:
                    resp = await self.client.get(path, params=params)

                    if resp.status_code == 429:
                        retry_after = _parse_retry_after(resp.headers.get("Retry-After"))
                        logger.warning(
                            f"Rate limited on {path}, retrying in {retry_after}s "
                            f"(attempt {attempt + 1}/{MAX_HTTP_RETRIES})"
                        )
                        await asyncio.sleep(retry_after)
                        continue

                    resp.raise_for_status()

                except httpx.TimeoutException:
                    wait_time = 2 ** attempt
                    logger.warning(
                        f"Timeout on {path}, retrying in {wait_time}s (attempt {attempt + 1}/{MAX_HTTP_RETRIES})"
                    )
                    if attempt < MAX_HTTP_RETRIES - 1:
                        await asyncio.sleep(wait_time)
                    continue

                except httpx.HTTPStatusError as exc:
                    logger.error(f"HTTP {exc.response.status_code} on {path}: {exc}")
                    return FetchResult.failure(f"HTTP {exc.response.status_code}", None)

                except httpx.HTTPError as exc:
                    logger.error(f"Request error on {path}: {type(exc).__name__}: {exc}")
                    return FetchResult.failure(f"{type(exc).__name__}: {exc}", None)

                try:
                    payload = resp.json()
                except ValueError as exc:
                    raise MalformedResponseError(f"Invalid JSON from {path}: {exc}") from exc
                if not isinstance(payload, dict):
                    raise MalformedResponseError(f"Expected a JSON object from {path}, got {type(payload).__name__}")
                return FetchResult(payload)

            logger.error(f"Max retries exceeded for {path}")
            return FetchResult.failure("max retries exceeded", None)

    @staticmethod
    def _results(payload: dict, path: str, key: str = "results"):
        results = payload.get(key)
        if results is None:
            raise MalformedResponseError(f"Response from {path} has no '{key}' field")
        return results

    async def _fetch_movies(self, path: str, params: dict) -> FetchResult[list[CatalogMovie]]:
        fetched = await self._get_json(path, params)
        if not fetched.ok:
            return FetchResult.failure(fetched.error, [])
        return FetchResult([CatalogMovie.from_api(m) for m in self._results(fetched.value, path)])

    async def _fetch_genre_lookup(self) -> FetchResult[dict[str, int]]:
        path = "/genre/movie/list"
        fetched = await self._get_json(path, {"language": CATALOG_LANGUAGE})
        if not fetched.ok:
            return FetchResult.failure(fetched.error, {})
        genres = self._results(fetched.value, path, key="genres")
        return FetchResult({g["name"].lower(): g["id"] for g in genres if g.get("name") and "id" in g})

    async def resolve_genres(self) -> FetchResult[Mapping[str, int]]:
        """Lower-cased genre name -> catalog genre id, fetched once per process."""
        return await self.genre_cache.get(self._fetch_genre_lookup)

    async def discover_by_genres(self, genre_ids: list[int]) -> FetchResult[list[CatalogMovie]]:
        """Popular, well-voted movies filtered to the given genre ids (first page)."""
        return await self._fetch_movies("/discover/movie", {
            "with_genres": ",".join(str(gid) for gid in genre_ids),
            "sort_by": DISCOVER_SORT_BY,
            "vote_count.gte": DISCOVER_MIN_VOTE_COUNT,
            "language": CATALOG_LANGUAGE,
            "page": 1,
        })

    async def search_by_text(self, query: str) -> FetchResult[list[CatalogMovie]]:
        """Free-text title search (first page, adult content excluded)."""
        return await self._fetch_movies("/search/movie", {
            "query": query,
            "language": CATALOG_LANGUAGE,
            "page": 1,
            "include_adult": "false",
        })

    async def fetch_watch_providers(self, movie_id: int) -> FetchResult[list[WatchProvider]]:
        """
        Providers for the configured region, flattened across offer types.

        Offer types are walked flatrate -> rent -> buy and providers are
        de-duplicated by name, keeping the first occurrence.
        """
        path = f"/movie/{movie_id}/watch/providers"
        fetched = await self._get_json(path)
        if not fetched.ok:
            return FetchResult.failure(fetched.error, [])

        region = (self._results(fetched.value, path) or {}).get(WATCH_REGION)
        if not region:
            return FetchResult([])

        providers: dict[str, WatchProvider] = {}
        for offer_type in PROVIDER_OFFER_TYPES:
            for option in region.get(offer_type) or []:
                name = option.get("provider_name")
                if name and name not in providers:
                    providers[name] = WatchProvider(name=name, logo_url=_provider_logo_url(option.get("logo_path")))
        return FetchResult(list(providers.values()))

    async def fetch_reviews(self, movie_id: int) -> FetchResult[list[Review]]:
        """First page of reviews, capped to MAX_REVIEWS in catalog order."""
        path = f"/movie/{movie_id}/reviews"
        fetched = await self._get_json(path, {"language": CATALOG_LANGUAGE, "page": 1})
        if not fetched.ok:
            return FetchResult.failure(fetched.error, [])
        return FetchResult([Review.from_api(r) for r in self._results(fetched.value, path)[:MAX_REVIEWS]])

    async def fetch_videos(self, movie_id: int) -> FetchResult[list[Video]]:
        path = f"/movie/{movie_id}/videos"
        fetched = await self._get_json(path, {"language": CATALOG_LANGUAGE})
        if not fetched.ok:
            return FetchResult.failure(fetched.error, [])
        return FetchResult([Video.from_api(v) for v in self._results(fetched.value, path)])
