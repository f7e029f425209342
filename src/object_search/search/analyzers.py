"""Text analysis for indexed field values and search text.

An analyzer turns text into positional, lower-cased tokens. The same
analyzer runs at index time and when the planner splits the search text into
words, so both sides agree on what a word is.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, replace
import re
from typing import Protocol


@dataclass(frozen=True)
class Token:
    """One analyzed word and where it came from."""

    text: str
    position: int
    start_char: int
    end_char: int


class Analyzer(Protocol):
    def __call__(self, text: str) -> list[Token]:  # pragma: no cover - interface definition
        ...


TokenFilter = Callable[[Iterable[Token]], Iterable[Token]]


class RegexTokenizer:
    """Emits every match of ``pattern`` as a token, numbered in order."""

    def __init__(self, pattern: str = r"[\w']+") -> None:
        self.pattern = re.compile(pattern)

    def __call__(self, text: str) -> Iterator[Token]:
        for position, match in enumerate(self.pattern.finditer(text)):
            yield Token(match.group(0), position, match.start(), match.end())


def lowercase(tokens: Iterable[Token]) -> Iterator[Token]:
    for token in tokens:
        lowered = token.text.lower()
        yield token if lowered == token.text else replace(token, text=lowered)


DEFAULT_STOPWORDS = frozenset(
    {"a", "an", "and", "are", "as", "at", "be", "by", "for", "in", "is", "it", "of", "on", "or", "the", "to", "with"}
)


class StopFilter:
    """Drops tokens found in a stopword vocabulary (case-insensitive)."""

    def __init__(self, stopwords: Iterable[str] | None = None) -> None:
        self.stopwords = frozenset(word.lower() for word in (DEFAULT_STOPWORDS if stopwords is None else stopwords))

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        return (token for token in tokens if token.text.lower() not in self.stopwords)


class _FilteredAnalyzer:
    def __init__(self, tokenizer: RegexTokenizer, filters: Sequence[TokenFilter]) -> None:
        self.tokenizer = tokenizer
        self.filters = tuple(filters)

    def __call__(self, text: str) -> list[Token]:
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        # renumber so removed words leave no holes for phrase matching
        return [
            token if token.position == position else replace(token, position=position)
            for position, token in enumerate(stream)
        ]


class StandardAnalyzer(_FilteredAnalyzer):
    """Word tokens, lower-cased, no stemming.

    Stopword removal is opt-in. Names such as "Bank of America" must keep
    every word, otherwise phrase tiers can never match them.
    """

    def __init__(self, *, stopwords: Iterable[str] | None = None, remove_stopwords: bool = False) -> None:
        filters: list[TokenFilter] = [lowercase]
        if remove_stopwords:
            filters.append(StopFilter(stopwords))
        super().__init__(RegexTokenizer(), filters)


class WhitespaceAnalyzer(_FilteredAnalyzer):
    """Splits on whitespace only; punctuation stays attached to words."""

    def __init__(self) -> None:
        super().__init__(RegexTokenizer(r"\S+"), [lowercase])


_ANALYZERS: dict[str, Callable[[], Analyzer]] = {
    "default": StandardAnalyzer,
    "standard": StandardAnalyzer,
    "english": lambda: StandardAnalyzer(remove_stopwords=True),
    "whitespace": WhitespaceAnalyzer,
}


def get_analyzer(name: str | None) -> Analyzer:
    """Build the analyzer registered as ``name`` (case-insensitive); None means default."""
    key = "default" if name is None else name.lower()
    try:
        factory = _ANALYZERS[key]
    except KeyError:
        msg = f"Unknown analyzer '{name}'. Available: {sorted(_ANALYZERS)}"
        raise ValueError(msg) from None
    return factory()


def analyze_words(analyzer: Analyzer, text: str) -> list[str]:
    """Token texts of ``text`` in order."""
    return [token.text for token in analyzer(text) if token.text]
