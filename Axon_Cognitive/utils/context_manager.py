"""Token counting and context-window budgeting for LLM prompts.

Counts are an approximation: words, numbers and individual punctuation marks
each count as one token, which tracks BPE tokenizers closely enough to keep
prompts inside the window when paired with a buffer.
"""

from __future__ import annotations

import re
from typing import List, Sequence

from Axon_Cognitive.core.errors import InvalidInputError


_TOKEN_PATTERN = re.compile(r"\w+|[^\w\s]", re.UNICODE)


class TokenCounter:
    """Word/punctuation run counter. Approximates BPE counts and tends to
    undercount; ``buffer_tokens`` covers the difference."""

    def count_tokens(self, text: str) -> int:
        return sum(1 for _ in _TOKEN_PATTERN.finditer(text or ""))

    def count_tokens_array(self, texts: Sequence[str]) -> List[int]:
        return [self.count_tokens(text) for text in texts]

    def truncate_text(self, text: str, max_tokens: int) -> str:
        """Keep the leading ``max_tokens`` tokens of ``text``."""
        if max_tokens <= 0:
            return ""
        for index, match in enumerate(_TOKEN_PATTERN.finditer(text or "")):
            if index + 1 == max_tokens:
                return text[: match.end()]
        return text


class ContextManager:
    """Helper for fitting prompt segments inside a model's context window."""

    def __init__(self, max_context_tokens: int, buffer_tokens: int = 1000) -> None:
        self.token_counter = TokenCounter()
        self.max_context_tokens = int(max_context_tokens)
        self.buffer_tokens = int(buffer_tokens)

    def get_available_tokens(self, existing_content: str) -> int:
        used = self.token_counter.count_tokens(existing_content)
        return max(0, self.max_context_tokens - used - self.buffer_tokens)

    def get_available_tokens_from_segments(self, segments: Sequence[str]) -> int:
        used = sum(self.token_counter.count_tokens_array(segments))
        return max(0, self.max_context_tokens - used - self.buffer_tokens)

    def select_context_segments(
        self,
        segments: Sequence[str],
        importance_scores: Sequence[float],
        system_prompt_tokens: int,
    ) -> List[int]:
        """Pick segment indices greedily by importance per token.

        The returned indices are sorted back into their original order.
        """
        if len(segments) != len(importance_scores):
            raise InvalidInputError("Segments and importance scores must have the same length")

        token_counts = self.token_counter.count_tokens_array(segments)
        available = self.max_context_tokens - system_prompt_tokens - self.buffer_tokens

        items = []
        for index, (tokens, importance) in enumerate(zip(token_counts, importance_scores)):
            # empty segments cost nothing, rank them first
            density = importance / tokens if tokens else float("inf")
            items.append((density, index, tokens))
        items.sort(key=lambda item: item[0], reverse=True)

        selected: List[int] = []
        used = 0
        for _, index, tokens in items:
            if used + tokens <= available:
                selected.append(index)
                used += tokens
        selected.sort()
        return selected


__all__ = ["ContextManager", "TokenCounter"]
