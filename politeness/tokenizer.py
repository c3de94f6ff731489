from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

import numpy as np

PAD_TOKEN = "[PAD]"
UNK_TOKEN = "[UNK]"
CLS_TOKEN = "[CLS]"
SEP_TOKEN = "[SEP]"

PAD_TOKEN_ID = 0
UNK_TOKEN_ID = 100
CLS_TOKEN_ID = 101
SEP_TOKEN_ID = 102

# Fallback ids for out-of-vocabulary tokens live in [HASH_FLOOR, HASH_MODULUS).
HASH_MULTIPLIER = 31
HASH_MODULUS = 30000
HASH_FLOOR = 200

_SPLIT_RE = re.compile(r"[ .,!?;:\n\r\t]+")


@dataclass(frozen=True)
class EncodedSequence:
    """Model input for a single text. All three arrays have the same length."""

    input_ids: tuple[int, ...]
    attention_mask: tuple[int, ...]
    token_type_ids: tuple[int, ...]

    def __len__(self) -> int:
        return len(self.input_ids)

    def as_arrays(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return (input_ids, attention_mask, token_type_ids) as int64 arrays of shape (1, n)."""
        return (
            np.asarray(self.input_ids, dtype=np.int64).reshape(1, -1),
            np.asarray(self.attention_mask, dtype=np.int64).reshape(1, -1),
            np.asarray(self.token_type_ids, dtype=np.int64).reshape(1, -1),
        )


def _base_vocab() -> dict[str, int]:
    return {
        PAD_TOKEN: PAD_TOKEN_ID,
        UNK_TOKEN: UNK_TOKEN_ID,
        CLS_TOKEN: CLS_TOKEN_ID,
        SEP_TOKEN: SEP_TOKEN_ID,
    }


def split_tokens(text: str) -> list[str]:
    """Lowercase and split on whitespace/punctuation, dropping empty fragments."""
    return [t for t in _SPLIT_RE.split(text.lower()) if t]


def fallback_token_id(token: str) -> int:
    h = 0
    for ch in token:
        h = (h * HASH_MULTIPLIER + ord(ch)) % HASH_MODULUS
    return max(HASH_FLOOR, h)


class VocabularyEncoder:
    """
    Simplified BERT-style encoder:
    - whitespace/punctuation split, no subwords
    - [CLS] tokens... [SEP] then [PAD] up to max_length
    - out-of-vocabulary tokens are hashed into the id space instead of [UNK]

    The vocabulary is read-only after construction, so one instance can be
    shared by any number of concurrent callers.
    """

    def __init__(self, extra_vocab: Optional[Mapping[str, int]] = None):
        vocab = _base_vocab()
        if extra_vocab:
            for token, token_id in extra_vocab.items():
                if token_id < 0:
                    raise ValueError(f"token id must be >= 0: token={token!r} id={token_id}")
                vocab.setdefault(token, token_id)
        self._vocab: Mapping[str, int] = MappingProxyType(vocab)

    @property
    def vocab(self) -> Mapping[str, int]:
        return self._vocab

    def token_id(self, token: str) -> int:
        token_id = self._vocab.get(token)
        if token_id is not None:
            return token_id
        return fallback_token_id(token)

    def encode(self, text: str, max_length: int) -> EncodedSequence:
        """
        Encode text into a fixed-length sequence.

        Raises:
            ValueError: if max_length leaves no room for [CLS] and [SEP]
        """
        if max_length < 2:
            raise ValueError("max_length must be >= 2")

        input_ids = [CLS_TOKEN_ID]
        for token in split_tokens(text):
            if len(input_ids) >= max_length - 1:
                break
            input_ids.append(self.token_id(token))
        input_ids.append(SEP_TOKEN_ID)

        real = len(input_ids)
        pad = max_length - real
        return EncodedSequence(
            input_ids=tuple(input_ids) + (PAD_TOKEN_ID,) * pad,
            attention_mask=(1,) * real + (0,) * pad,
            token_type_ids=(0,) * max_length,
        )
