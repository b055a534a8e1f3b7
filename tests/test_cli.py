import json
import logging

import pytest

from moviemood import cli
from moviemood.recommender import Recommendation
from moviemood.tmdb import MalformedResponseError, Review


def _sample_recs():
    return [
        Recommendation(
            id=603, title="The Matrix", year=1999, plot="A hacker learns the truth.", rating=8.2,
            match_percentage=96, streaming_platforms=["Max"], trailer_key="vKQi3bBA1y8",
            reviews=[Review(author="critic", content="Mind-bending.", created_at="2020-01-01")],
            intensity=8, emotions=["wonder"],
        ),
    ]


def test_validate_description_requires_five_words():
    assert cli._validate_description("  a fun and exciting movie  ") == "a fun and exciting movie"
    with pytest.raises(ValueError):
        cli._validate_description("too short really")
    with pytest.raises(ValueError):
        cli._validate_description("")


def test_main_dispatches_to_subcommand(monkeypatch):
    called = {}

    def fake_genres(args):
        called["command"] = args.command
        return 0

    monkeypatch.setattr(cli, "cmd_genres", fake_genres)

    assert cli.main(["genres"]) == 0
    assert called["command"] == "genres"


def test_recommend_rejects_short_description(monkeypatch, caplog):
    async def should_not_run(text):
        raise AssertionError("pipeline must not run for short input")

    monkeypatch.setattr(cli, "get_recommendations", should_not_run)
    caplog.set_level(logging.INFO)

    assert cli.main(["recommend", "something", "scary"]) == 2
    assert "at least 5 words" in caplog.text


def test_recommend_json_output(monkeypatch, caplog):
    seen = {}

    async def fake_recommendations(text):
        seen["text"] = text
        return _sample_recs()

    monkeypatch.setattr(cli, "get_recommendations", fake_recommendations)
    caplog.set_level(logging.INFO, logger="moviemood.cli")

    assert cli.main(["recommend", "a", "mind", "bending", "sci-fi", "classic", "--format", "json"]) == 0

    assert seen["text"] == "a mind bending sci-fi classic"
    payload = json.loads(caplog.records[-1].getMessage())
    assert payload[0]["title"] == "The Matrix"
    assert payload[0]["match_percentage"] == 96
    assert payload[0]["genres"] == []


def test_recommend_text_output(monkeypatch, caplog):
    async def fake_recommendations(text):
        return _sample_recs()

    monkeypatch.setattr(cli, "get_recommendations", fake_recommendations)
    caplog.set_level(logging.INFO, logger="moviemood.cli")

    assert cli.main(["recommend", "a mind bending sci-fi classic please"]) == 0

    assert "The Matrix (1999) - 96% match" in caplog.text
    assert "Watch on: Max" in caplog.text
    assert "https://www.youtube.com/watch?v=vKQi3bBA1y8" in caplog.text


def test_recommend_reports_empty_results(monkeypatch, caplog):
    async def no_recommendations(text):
        return []

    monkeypatch.setattr(cli, "get_recommendations", no_recommendations)
    caplog.set_level(logging.INFO, logger="moviemood.cli")

    assert cli.main(["recommend", "nothing", "will", "match", "this", "request"]) == 0
    assert "No recommendations found" in caplog.text


def test_recommend_surfaces_malformed_catalog_responses(monkeypatch, caplog):
    async def broken(text):
        raise MalformedResponseError("Response from /search/movie has no 'results' field")

    monkeypatch.setattr(cli, "get_recommendations", broken)
    caplog.set_level(logging.INFO, logger="moviemood.cli")

    assert cli.main(["recommend", "a", "long", "enough", "movie", "description"]) == 1
    assert "unexpected response" in caplog.text


def test_recommend_without_api_key(monkeypatch, caplog):
    monkeypatch.setattr("moviemood.tmdb.TMDB_API_KEY", "")
    caplog.set_level(logging.INFO, logger="moviemood.cli")

    assert cli.main(["recommend", "a", "long", "enough", "movie", "description"]) == 1
    assert "TMDB_API_KEY" in caplog.text


def test_analyze_command_logs_profile(caplog):
    caplog.set_level(logging.INFO, logger="moviemood.cli")

    assert cli.main(["analyze", "a", "gentle", "funny", "love", "story"]) == 0

    assert "comedy" in caplog.text
    assert "romance" in caplog.text
    assert "Intensity: 3/10" in caplog.text
