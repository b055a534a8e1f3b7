import importlib
import sys
from pathlib import Path

import httpx
import pytest

# Ensure the package under test is importable without installation
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from moviemood import tmdb  # noqa: E402

TEST_BASE_URL = "https://tmdb.test/3"


@pytest.fixture(autouse=True)
def reset_genre_cache():
    """The genre lookup is process-wide; start every test with it empty."""
    tmdb.GENRE_LOOKUP_CACHE.reset()
    yield
    tmdb.GENRE_LOOKUP_CACHE.reset()


@pytest.fixture
def fresh_config(monkeypatch):
    """Reload config so env overrides set by the test take effect."""
    import moviemood.config as config

    yield lambda: importlib.reload(config)
    monkeypatch.undo()
    importlib.reload(config)


@pytest.fixture
def make_client():
    """
    Build a TMDbClient backed by httpx.MockTransport.

    ``routes`` maps a path relative to the API root (e.g. '/search/movie') to
    either an httpx.Response or a callable taking the request. Every request
    is recorded in ``client.requests``.
    """

    def _make(routes: dict, **kwargs) -> tmdb.TMDbClient:
        requests: list[httpx.Request] = []

        async def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            path = request.url.path.removeprefix("/3")
            route = routes.get(path)
            if route is None:
                return httpx.Response(404, json={"status_message": "not found"})
            if callable(route):
                route = route(request)
                if not isinstance(route, httpx.Response):
                    route = await route
            return route

        client = tmdb.TMDbClient(
            api_key="test-key",
            base_url=TEST_BASE_URL,
            transport=httpx.MockTransport(handler),
            **kwargs,
        )
        client.requests = requests
        return client

    return _make


def movie_payload(movie_id: int, **overrides) -> dict:
    data = {
        "id": movie_id,
        "title": f"Movie {movie_id}",
        "overview": f"Plot of movie {movie_id}",
        "release_date": "2010-07-16",
        "poster_path": f"/poster{movie_id}.jpg",
        "backdrop_path": f"/backdrop{movie_id}.jpg",
        "vote_average": 7.0,
        "popularity": 500.0,
        "genre_ids": [28],
    }
    data.update(overrides)
    return data


GENRES_PAYLOAD = {
    "genres": [
        {"id": 28, "name": "Action"},
        {"id": 35, "name": "Comedy"},
        {"id": 18, "name": "Drama"},
        {"id": 27, "name": "Horror"},
        {"id": 53, "name": "Thriller"},
    ]
}
