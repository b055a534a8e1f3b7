import logging
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from .keywords import (
    GENRE_KEYWORDS,
    EMOTION_KEYWORDS,
    HIGH_INTENSITY_KEYWORDS,
    LOW_INTENSITY_KEYWORDS,
    DEFAULT_INTENSITY,
    HIGH_INTENSITY,
    LOW_INTENSITY,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreferenceProfile:
    """Structured preferences extracted from a free-text description."""
    genres: frozenset[str] = field(default_factory=frozenset)
    emotions: frozenset[str] = field(default_factory=frozenset)
    intensity: int = DEFAULT_INTENSITY


def find_keyword_matches(text: str, dictionary: Mapping[str, Sequence[str]]) -> frozenset[str]:
    """
    Return every category with a trigger contained in any whitespace token.

    Containment is substring-based, so 'non-action' matches the 'action' trigger.
    """
    words = text.lower().split()
    return frozenset(
        category
        for category, triggers in dictionary.items()
        if any(trigger.lower() in word for trigger in triggers for word in words)
    )


def detect_intensity(text: str) -> int:
    """
    Score intensity against the whole lower-cased text.

    The low check runs after the high check, so low wins when both appear.
    """
    lowered = text.lower()
    intensity = DEFAULT_INTENSITY
    if any(word in lowered for word in HIGH_INTENSITY_KEYWORDS):
        intensity = HIGH_INTENSITY
    if any(word in lowered for word in LOW_INTENSITY_KEYWORDS):
        intensity = LOW_INTENSITY
    return intensity


def analyze(text: str) -> PreferenceProfile:
    """Convert raw input text into a PreferenceProfile. Never raises."""
    profile = PreferenceProfile(
        genres=find_keyword_matches(text, GENRE_KEYWORDS),
        emotions=find_keyword_matches(text, EMOTION_KEYWORDS),
        intensity=detect_intensity(text),
    )
    logger.debug(
        f"Analyzed input: genres={sorted(profile.genres)}, "
        f"emotions={sorted(profile.emotions)}, intensity={profile.intensity}"
    )
    return profile
