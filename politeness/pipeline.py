from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

from politeness.analyzer import PolitenessAnalyzer
from politeness.politeness_types import PolitenessAnalysisResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalyzedText:
    """
    Output record for downstream consumers.
    """
    text: str
    politeness_level: str  # Polite|SomewhatPolite|Neutral|Impolite
    description: str
    inference_time_ms: int
    model_version: str
    analyzed_at: str  # ISO8601 UTC


async def analyze_texts(
        analyzer: PolitenessAnalyzer,
        texts: Sequence[Optional[str]],
        model_version: str,
) -> list[AnalyzedText]:
    """
    Analyze a batch of texts.

    - Sequential on one analyzer (one session)
    - Keeps ordering; blank texts come back as neutral
    """
    results: list[PolitenessAnalysisResponse] = []
    for text in texts:
        results.append(await analyzer.analyze(text))

    analyzed_at = datetime.now(timezone.utc).isoformat()
    logger.info("Analyzed texts: count=%s model_version=%s", len(results), model_version)

    out: list[AnalyzedText] = []
    for text, res in zip(texts, results):
        out.append(
            AnalyzedText(
                text=text or "",
                politeness_level=str(res.level),
                description=res.description,
                inference_time_ms=res.inference_time_ms,
                model_version=model_version,
                analyzed_at=analyzed_at,
            )
        )
    return out
