from __future__ import annotations

import inspect
import logging
from pathlib import Path
from typing import Optional, Protocol, Sequence

import numpy as np
import torch
from transformers import AutoModelForSequenceClassification

from politeness.errors import AnalyzerDisposedError, ModelNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_MODEL_DIR = Path("models") / "polite-guard-model"


class InferenceSession(Protocol):
    """One model instance. Takes a single-row batch, returns one logit vector."""

    def run(
        self,
        input_ids: np.ndarray,
        attention_mask: np.ndarray,
        token_type_ids: np.ndarray,
    ) -> Sequence[float]: ...

    def close(self) -> None: ...


class InferenceEngine(Protocol):
    """Shared handle that knows how to open sessions for a model path."""

    def open_session(self, model_path: str) -> InferenceSession: ...


def resolve_model_path(configured: Optional[str] = None) -> str:
    """
    Resolve the model location.

    Rules:
    - configured path wins if given
    - otherwise ./models/polite-guard-model under the working directory

    Raises:
        ModelNotFoundError: if nothing exists at the resolved location
    """
    path = Path(configured) if configured else Path.cwd() / DEFAULT_MODEL_DIR
    if path.exists():
        return str(path)
    raise ModelNotFoundError(f"Model file not found at: {path}")


def _select_device(device: str) -> torch.device:
    if device == "cpu":
        return torch.device("cpu")
    if device == "cuda":
        return torch.device("cuda")
    # auto
    return torch.device("cuda" if torch.cuda.is_available() else "cpu")


class TorchInferenceEngine:
    """
    transformers-backed engine:
    - device picked once, shared by all sessions
    - every session loads its own model copy (sessions are never shared)
    """

    def __init__(self, device: str = "cpu"):
        self._device = _select_device(device)

    def open_session(self, model_path: str) -> "TorchInferenceSession":
        """
        Raises:
            OSError: if model files are missing or path is invalid.
        """
        logger.info("Opening inference session: path=%s device=%s", model_path, self._device.type)
        model = AutoModelForSequenceClassification.from_pretrained(model_path)
        model = model.to(self._device)
        model.eval()
        return TorchInferenceSession(model, self._device)


class TorchInferenceSession:
    def __init__(self, model: torch.nn.Module, device: torch.device):
        self._model: Optional[torch.nn.Module] = model
        self._device = device
        # DistilBERT-style models have no segment embeddings
        self._takes_token_types = "token_type_ids" in inspect.signature(model.forward).parameters

    def run(
        self,
        input_ids: np.ndarray,
        attention_mask: np.ndarray,
        token_type_ids: np.ndarray,
    ) -> list[float]:
        model = self._model
        if model is None:
            raise AnalyzerDisposedError("Inference session is closed")

        enc = {
            "input_ids": torch.from_numpy(np.ascontiguousarray(input_ids)).to(self._device),
            "attention_mask": torch.from_numpy(np.ascontiguousarray(attention_mask)).to(self._device),
        }
        if self._takes_token_types:
            enc["token_type_ids"] = torch.from_numpy(np.ascontiguousarray(token_type_ids)).to(self._device)

        with torch.no_grad():
            logits = model(**enc).logits  # (1, num_labels)
        return logits[0].float().cpu().tolist()

    def close(self) -> None:
        if self._model is None:
            return
        self._model = None
        if self._device.type == "cuda":
            torch.cuda.empty_cache()
        logger.debug("Inference session closed")
