"""Token counting."""

from contextledger.tokens.estimator import DEFAULT_ENCODING, TokenEstimator, count_message_tokens

__all__ = ["DEFAULT_ENCODING", "TokenEstimator", "count_message_tokens"]
