"""Token counting for message content, used by callers to fill ``token_count``."""

from __future__ import annotations

from typing import Any

import structlog

DEFAULT_ENCODING = "o200k_base"
"""Encoding of the GPT-4o / o-series models."""


class TokenEstimator:
    """
    Counts tokens with tiktoken, falling back to a character heuristic.

    The ledger never calls this itself: callers count tokens before building
    a ``MessageInput``. Encoder objects are cached by encoding name (one load
    per process).
    """

    def __init__(self, encoding: str = DEFAULT_ENCODING) -> None:
        self._encoding = encoding
        self._encoder_cache: dict[str, Any] = {}
        self._force_heuristic: bool = False
        """Set to True in tests to skip loading tiktoken encodings."""
        self._logger = structlog.get_logger("contextledger.tokens")

    @property
    def encoding(self) -> str:
        return self._encoding

    def count(self, text: str) -> int:
        """
        Count tokens in ``text``.

        Returns:
            0 for empty text, otherwise a positive token count.
        """
        if not text:
            return 0
        if self._force_heuristic:
            return self._heuristic(text)
        try:
            return self._tiktoken_count(text)
        except Exception as exc:
            # tiktoken downloads BPE files on first use; offline hosts land here.
            self._logger.warning(
                "tiktoken_unavailable", encoding=self._encoding, error=str(exc)
            )
            self._force_heuristic = True
            return self._heuristic(text)

    def _heuristic(self, text: str) -> int:
        """Conservative heuristic: 4 characters per token, minimum 1."""
        return max(1, len(text) // 4)

    def _tiktoken_count(self, text: str) -> int:
        if self._encoding not in self._encoder_cache:
            import tiktoken

            self._encoder_cache[self._encoding] = tiktoken.get_encoding(self._encoding)
        encoder = self._encoder_cache[self._encoding]
        return len(encoder.encode(text))


_default_estimator: TokenEstimator | None = None


def count_message_tokens(content: str) -> int:
    """Count tokens in message content with the process-wide default estimator."""
    global _default_estimator
    if _default_estimator is None:
        _default_estimator = TokenEstimator()
    return _default_estimator.count(content)
