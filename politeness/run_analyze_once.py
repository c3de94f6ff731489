from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import asdict

from politeness.analyzer import PolitenessAnalyzer
from politeness.pipeline import analyze_texts
from politeness.readiness import ReadinessCoordinator
from politeness.settings import load_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# polite, somewhat polite, neutral, impolite
SAMPLE_TEXTS = [
    "Thank you so much for your help!",
    "I appreciate your patience on this matter. If you could provide those details "
    "when you get a chance, that would be helpful.",
    "The meeting has been rescheduled to 3 PM tomorrow. Please update your calendar accordingly.",
    "You clearly have no idea what you're talking about. Maybe you should educate yourself "
    "before wasting everyone's time with such ignorant questions.",
]


async def run(texts: list[str]) -> int:
    s = load_settings()
    logging.getLogger().setLevel(s.log_level.upper())

    coordinator = ReadinessCoordinator(
        settings=s,
        on_status=lambda msg: logger.info("Initialization: %s", msg),
    )
    ready = await coordinator.ensure_ready()
    if not ready.ok:
        logger.error("Failed to initialize analyzer: %s", ready.error or "Unknown error")
        return 1

    async with await PolitenessAnalyzer.create(coordinator) as analyzer:
        analyzed = await analyze_texts(analyzer, texts, model_version=s.model_version)

    # Minimal output for inspection (CLI only)
    print(json.dumps([asdict(a) for a in analyzed], ensure_ascii=False, indent=2))
    return 0


def main() -> None:
    texts = sys.argv[1:] or SAMPLE_TEXTS
    sys.exit(asyncio.run(run(texts)))


if __name__ == "__main__":
    main()
