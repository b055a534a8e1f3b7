import argparse
import asyncio
import json
import logging
import sys

from .analyzer import analyze
from .config import MIN_DESCRIPTION_WORDS
from .recommender import Recommendation, get_recommendations
from .tmdb import MalformedResponseError, TMDbClient

logger = logging.getLogger(__name__)


def _join_description(words: list[str]) -> str:
    return " ".join(words).strip()


def _validate_description(text: str) -> str:
    """
    Reject descriptions too short to analyze meaningfully.
    Raises ValueError; returns the stripped text otherwise.
    """
    cleaned = text.strip()
    if len(cleaned.split()) < MIN_DESCRIPTION_WORDS:
        raise ValueError(
            f"Please provide a more detailed description (at least {MIN_DESCRIPTION_WORDS} words)"
        )
    return cleaned


def _output_recommendations(recs: list[Recommendation], args: argparse.Namespace, description: str) -> None:
    """Format and log recommendations in the requested format."""
    output_format = getattr(args, 'format', 'text')

    if output_format == 'json':
        logger.info(json.dumps([r.to_dict() for r in recs], indent=2))
        return

    if not recs:
        logger.info("No recommendations found. Try describing the mood, genre or pace you're after.")
        return

    if output_format == 'markdown':
        logger.info(f"\n# Top {len(recs)} picks for \"{description}\"\n")
        for i, r in enumerate(recs, 1):
            year = f" ({r.year})" if r.year else ""
            logger.info(f"## {i}. {r.title}{year} - {r.match_percentage}% match")
            logger.info(f"**Rating**: {r.rating:.1f}  ")
            if r.streaming_platforms:
                logger.info(f"**Where to watch**: {', '.join(r.streaming_platforms)}  ")
            if r.trailer_key:
                logger.info(f"**Trailer**: https://www.youtube.com/watch?v={r.trailer_key}  ")
            logger.info(f"\n{r.plot}\n")

    else:  # text format
        logger.info(f"\nTop {len(recs)} picks for \"{description}\":")
        for i, r in enumerate(recs, 1):
            year = f" ({r.year})" if r.year else ""
            logger.info(f"{i}. {r.title}{year} - {r.match_percentage}% match, rated {r.rating:.1f}")
            if r.streaming_platforms:
                logger.info(f"   Watch on: {', '.join(r.streaming_platforms)}")
            if r.trailer_key:
                logger.info(f"   Trailer: https://www.youtube.com/watch?v={r.trailer_key}")
            if r.reviews:
                review = r.reviews[0]
                snippet = review.content[:150].replace("\n", " ")
                logger.info(f"   {review.author}: \"{snippet}{'...' if len(review.content) > 150 else ''}\"")


def cmd_recommend(args: argparse.Namespace) -> int:
    """Generate recommendations for a free-text description."""
    try:
        description = _validate_description(_join_description(args.description))
    except ValueError as exc:
        logger.error(str(exc))
        return 2

    try:
        recs = asyncio.run(get_recommendations(description))
    except MalformedResponseError as exc:
        logger.error(f"Catalog returned an unexpected response: {exc}")
        return 1
    except ValueError as exc:
        logger.error(str(exc))
        return 1

    _output_recommendations(recs, args, description)
    return 0


def cmd_analyze(args: argparse.Namespace) -> int:
    """Show the preference profile extracted from a description."""
    profile = analyze(_join_description(args.description))
    logger.info(f"Genres: {', '.join(sorted(profile.genres)) or '(none)'}")
    logger.info(f"Emotions: {', '.join(sorted(profile.emotions)) or '(none)'}")
    logger.info(f"Intensity: {profile.intensity}/10")
    return 0


async def _load_genres() -> dict[str, int] | None:
    async with TMDbClient() as client:
        result = await client.resolve_genres()
    return dict(result.value) if result.ok else None


def cmd_genres(args: argparse.Namespace) -> int:
    """List the catalog's genre lookup."""
    try:
        genres = asyncio.run(_load_genres())
    except ValueError as exc:
        logger.error(str(exc))
        return 1

    if genres is None:
        logger.error("Could not fetch genres from the catalog")
        return 1

    for name, genre_id in sorted(genres.items()):
        logger.info(f"{genre_id:>6}  {name}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Mood-based movie recommendations")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    rec_parser = subparsers.add_parser("recommend", help="Recommend movies for a description")
    rec_parser.add_argument("description", nargs="+",
                            help="What you feel like watching (at least 5 words)")
    rec_parser.add_argument("--format", choices=['text', 'json', 'markdown'], default='text',
                            help="Output format")
    rec_parser.set_defaults(func=cmd_recommend)

    analyze_parser = subparsers.add_parser("analyze", help="Show the preference profile for a description")
    analyze_parser.add_argument("description", nargs="+", help="Free-text description")
    analyze_parser.set_defaults(func=cmd_analyze)

    genres_parser = subparsers.add_parser("genres", help="List catalog genres")
    genres_parser.set_defaults(func=cmd_genres)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure logging based on verbosity
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
