from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from politeness.politeness_types import PolitenessLevel

logger = logging.getLogger(__name__)

NO_TEXT_DESCRIPTION = "No text to analyze"
UNKNOWN_DESCRIPTION = "Unable to determine politeness level"

# Calibration constants tuned against the polite-guard model outputs.
# Changing any of them shifts classifications; re-tune only with labelled data.
BINARY_CONFIDENT = 0.8
POLITE_MIN_CONFIDENCE = 0.5
POLITE_MAX_IMPOLITE_PROB = 0.25
POLITE_MAX_SOMEWHAT_PROB = 0.15

_DESCRIPTIONS = {
    PolitenessLevel.POLITE: (
        "Text is considerate and shows respect and good manners, "
        "often including courteous phrases and a friendly tone."
    ),
    PolitenessLevel.SOMEWHAT_POLITE: (
        "Text is generally respectful but lacks warmth or formality, "
        "communicating with a decent level of courtesy."
    ),
    PolitenessLevel.NEUTRAL: (
        "Text is straightforward and factual, "
        "without emotional undertones or specific attempts at politeness."
    ),
    PolitenessLevel.IMPOLITE: (
        "Text is disrespectful or rude, often blunt or dismissive, "
        "showing a lack of consideration for the recipient's feelings."
    ),
}


def softmax(logits: Sequence[float]) -> np.ndarray:
    """
    Numerically stable softmax.

    Raises:
        ValueError: if logits is empty
    """
    values = np.asarray(logits, dtype=np.float64).reshape(-1)
    if values.size == 0:
        raise ValueError("logits must not be empty")
    exp = np.exp(values - values.max())
    return exp / exp.sum()


def argmax(probabilities: Sequence[float]) -> int:
    # np.argmax returns the first maximal index on ties
    return int(np.argmax(np.asarray(probabilities)))


def map_to_level(probabilities: Sequence[float]) -> PolitenessLevel:
    """
    Map a probability vector to a level.

    Binary model: [polite, impolite].
    Four-class polite-guard model, observed ordering:
      0 neutral, 1 somewhat polite (rarely activated), 2 polite, 3 impolite.
    Any other width falls back to neutral.
    """
    probs = np.asarray(probabilities, dtype=np.float64).reshape(-1)
    if probs.size not in (2, 4):
        logger.warning("Unexpected class count from model: n=%s (falling back to neutral)", probs.size)
        return PolitenessLevel.NEUTRAL

    idx = argmax(probs)
    confidence = float(probs[idx])

    if probs.size == 2:
        if idx == 0:
            return PolitenessLevel.POLITE if confidence > BINARY_CONFIDENT else PolitenessLevel.SOMEWHAT_POLITE
        return PolitenessLevel.IMPOLITE if confidence > BINARY_CONFIDENT else PolitenessLevel.NEUTRAL

    if idx == 0:
        return PolitenessLevel.NEUTRAL
    if idx == 1:
        return PolitenessLevel.SOMEWHAT_POLITE
    if idx == 2:
        # mixed signals downgrade polite
        if (
            confidence < POLITE_MIN_CONFIDENCE
            or probs[3] > POLITE_MAX_IMPOLITE_PROB
            or probs[1] > POLITE_MAX_SOMEWHAT_PROB
        ):
            return PolitenessLevel.SOMEWHAT_POLITE
        return PolitenessLevel.POLITE
    return PolitenessLevel.IMPOLITE


def interpret(logits: Sequence[float]) -> tuple[PolitenessLevel, float]:
    """
    Convert raw logits into (level, confidence of the winning class).

    Malformed output (any width but 2 or 4, including empty) is neutral.
    """
    if len(logits) == 0:
        logger.warning("Empty logits from model (falling back to neutral)")
        return PolitenessLevel.NEUTRAL, 0.0
    probs = softmax(logits)
    return map_to_level(probs), float(probs[argmax(probs)])


def describe(level: object) -> str:
    if not isinstance(level, PolitenessLevel):
        return UNKNOWN_DESCRIPTION
    return _DESCRIPTIONS.get(level, UNKNOWN_DESCRIPTION)
