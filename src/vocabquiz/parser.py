import re
from abc import ABC, abstractmethod
from typing import List, NamedTuple, Optional, Sequence

from .models import WordDefinitionPair

TWO_LINE_MAX_WORD_LENGTH = 50

_INLINE_PAIR = re.compile(r"^(.+?)\s*[-:]\s*(.+)$")
_NUMBERED_PAIR = re.compile(r"^\d+\.\s*(.+?)\s*[-:]\s*(.+)$")


class LineMatch(NamedTuple):
    pair: Optional[WordDefinitionPair]
    consumed: int


def _make_pair(word: str, definition: str) -> Optional[WordDefinitionPair]:
    word = word.strip()
    definition = definition.strip()
    if not word or not definition:
        return None
    return WordDefinitionPair(word=word, definition=definition)


def _clean_lines(text: str) -> List[str]:
    lines = (line.strip() for line in text.splitlines())
    return [line for line in lines if line]


# --- Strategy Pattern: Line Matchers ---
class LineMatcher(ABC):
    """A single recognisable layout of a word/definition entry."""

    @abstractmethod
    def match(self, lines: Sequence[str], index: int) -> Optional[LineMatch]:
        """Return a match when the pattern applies at ``lines[index]``, else None.

        A match may carry no pair (the layout was recognised but one side was
        empty); the caller still advances by ``consumed`` lines.
        """


class RegexLineMatcher(LineMatcher):
    def __init__(self, pattern: "re.Pattern[str]"):
        self.pattern = pattern

    def match(self, lines: Sequence[str], index: int) -> Optional[LineMatch]:
        found = self.pattern.match(lines[index])
        if not found:
            return None
        return LineMatch(_make_pair(found.group(1), found.group(2)), 1)


class InlinePairMatcher(RegexLineMatcher):
    """``word - definition`` or ``word: definition`` on one line."""

    def __init__(self):
        super().__init__(_INLINE_PAIR)


class NumberedListMatcher(RegexLineMatcher):
    """``1. word - definition``."""

    def __init__(self):
        super().__init__(_NUMBERED_PAIR)


class TwoLinePairMatcher(LineMatcher):
    """A short word line followed by a longer definition line."""

    def __init__(self, max_word_length: int = TWO_LINE_MAX_WORD_LENGTH):
        self.max_word_length = max_word_length

    def match(self, lines: Sequence[str], index: int) -> Optional[LineMatch]:
        if index + 1 >= len(lines):
            return None
        word, definition = lines[index], lines[index + 1]
        if len(word) < self.max_word_length and len(definition) > len(word):
            return LineMatch(WordDefinitionPair(word=word, definition=definition), 2)
        return None


class VocabularyParser:
    """Turns loosely structured text into word/definition pairs.

    Matchers are tried in order at each line; the first that applies wins.
    When that pass yields nothing, the fallback matchers are run over every
    line independently.
    """

    def __init__(
        self,
        matchers: Optional[List[LineMatcher]] = None,
        fallback_matchers: Optional[List[LineMatcher]] = None,
    ):
        if matchers is None:
            matchers = [InlinePairMatcher(), TwoLinePairMatcher()]
        if fallback_matchers is None:
            fallback_matchers = [NumberedListMatcher()]
        self.matchers = matchers
        self.fallback_matchers = fallback_matchers

    def parse(
        self, text: str, separator: Optional[str] = None
    ) -> List[WordDefinitionPair]:
        lines = _clean_lines(text or "")
        if not lines:
            return []
        if separator is not None:
            return self._parse_with_separator(lines, separator)

        pairs = self._scan(lines)
        if not pairs:
            pairs = self._fallback(lines)
        return pairs

    def _scan(self, lines: List[str]) -> List[WordDefinitionPair]:
        pairs = []
        i = 0
        while i < len(lines):
            step = 1
            for matcher in self.matchers:
                result = matcher.match(lines, i)
                if result is None:
                    continue
                if result.pair is not None:
                    pairs.append(result.pair)
                step = result.consumed
                break
            i += step
        return pairs

    def _fallback(self, lines: List[str]) -> List[WordDefinitionPair]:
        pairs = []
        for i in range(len(lines)):
            for matcher in self.fallback_matchers:
                result = matcher.match(lines, i)
                if result is not None:
                    if result.pair is not None:
                        pairs.append(result.pair)
                    break
        return pairs

    @staticmethod
    def _parse_with_separator(
        lines: List[str], separator: str
    ) -> List[WordDefinitionPair]:
        if not separator:
            return []
        pairs = []
        for line in lines:
            word, found, definition = line.partition(separator)
            if not found:
                continue
            pair = _make_pair(word, definition)
            if pair is not None:
                pairs.append(pair)
        return pairs


_default_parser = VocabularyParser()


def parse_vocabulary(
    text: str, separator: Optional[str] = None
) -> List[WordDefinitionPair]:
    """Parse ``text`` with the default matchers, or split on ``separator``."""
    return _default_parser.parse(text, separator)
