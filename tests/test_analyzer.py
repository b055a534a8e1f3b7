import pytest

from moviemood import analyzer
from moviemood.keywords import EMOTION_KEYWORDS, GENRE_KEYWORDS


def test_matches_genres_and_emotions_from_tokens():
    profile = analyzer.analyze("I want a scary movie with lots of tension and a hopeful ending")

    assert {"horror", "thriller"} <= profile.genres
    assert {"fear", "suspense", "hope"} <= profile.emotions
    assert profile.intensity == 5


def test_substring_matching_is_permissive():
    # 'action' is contained in the token 'non-action', so the genre still matches
    profile = analyzer.analyze("something non-action please")
    assert "action" in profile.genres


def test_matching_is_case_insensitive():
    profile = analyzer.analyze("HORROR NIGHT")
    assert "horror" in profile.genres
    assert "fear" in profile.emotions


def test_multi_word_triggers_never_match_single_tokens():
    profile = analyzer.analyze("I like science fiction")
    assert "sci-fi" not in profile.genres


@pytest.mark.parametrize(
    "text, expected",
    [
        ("a brutal and violent revenge story", 8),
        ("an action-packed ride", 8),
        ("something calm and gentle for sunday", 3),
        ("an intense but ultimately peaceful film", 3),  # low wins over high
        ("just a movie for tonight", 5),
    ],
)
def test_intensity_levels(text, expected):
    assert analyzer.analyze(text).intensity == expected


def test_intensity_checks_whole_text_not_tokens():
    # 'extreme' is found inside 'extremely'; trailing punctuation does not matter
    assert analyzer.detect_intensity("EXTREMELY tense") == 8
    assert analyzer.detect_intensity("it should be slow-paced.") == 3


def test_empty_input_returns_default_profile():
    profile = analyzer.analyze("")
    assert profile == analyzer.PreferenceProfile()
    assert profile.genres == frozenset()
    assert profile.emotions == frozenset()
    assert profile.intensity == 5


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "a funny romantic comedy about dating in the future",
        "brutal gentle magical documentary with real historical facts",
        "mindblowing spectacular space adventure with explosions",
        "zzz qqq xxx",
    ],
)
def test_profile_stays_within_known_categories(text):
    profile = analyzer.analyze(text)

    assert profile.genres <= set(GENRE_KEYWORDS)
    assert profile.emotions <= set(EMOTION_KEYWORDS)
    assert profile.intensity in {3, 5, 8}


def test_profile_is_immutable():
    profile = analyzer.analyze("funny movie")
    with pytest.raises(AttributeError):
        profile.intensity = 10
