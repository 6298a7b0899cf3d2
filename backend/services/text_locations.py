"""
Find place-name mentions in plain text using the gazetteer tables.

Capitalized words open candidate names of up to ``MAX_NAME_WORDS`` words. The
longest candidate that names a place wins. A city followed by ", <region>" or
", <country>" that contains it becomes a two-token mention; otherwise a bare
name resolves to a country, then a region, then the most populous city.
"""
from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from domain.models import GazetteerEntry, MentionGroup, MentionKind, MentionToken
from repositories import GazetteerRepository, name_key
from services.errors import BackendUnavailable

logger = logging.getLogger(__name__)

MAX_NAME_WORDS = 4
_WORD = re.compile(r"[^\W\d_]+(?:['.\-][^\W\d_]+)*")


@dataclass(frozen=True)
class _Word:
    start: int
    end: int  # inclusive
    text: str


def _words(text: str) -> List[_Word]:
    return [_Word(m.start(), m.end() - 1, m.group()) for m in _WORD.finditer(text)]


def _span_words(text: str, words: Sequence[_Word], i: int) -> List[Tuple[int, str]]:
    """Candidate (word_count, key) pairs starting at word ``i``, longest first.

    A candidate only grows across plain whitespace; punctuation ends it.
    """
    spans: List[Tuple[int, str]] = []
    parts = [words[i].text]
    spans.append((1, name_key(words[i].text)))
    for j in range(i + 1, min(i + MAX_NAME_WORDS, len(words))):
        gap = text[words[j - 1].end + 1 : words[j].start]
        if gap and not gap.isspace():
            break
        parts.append(words[j].text)
        spans.append((j - i + 1, name_key(" ".join(parts))))
    spans.reverse()
    return spans


def _is_candidate_start(word: _Word) -> bool:
    return word.text[0].isupper()


def _token(text: str, entry: GazetteerEntry, start: int, end: int) -> MentionToken:
    return MentionToken(
        type=entry.kind,
        lat=entry.lat,
        lon=entry.lon,
        start_index=start,
        end_index=end,
        matched_string=text[start : end + 1],
        code=entry.code or entry.country_code,
    )


def _qualifies(city: GazetteerEntry, qualifier: GazetteerEntry) -> bool:
    if qualifier.kind == MentionKind.COUNTRY:
        return city.country_code == qualifier.country_code
    if qualifier.kind == MentionKind.REGION:
        return city.country_code == qualifier.country_code and city.region_code == qualifier.region_code
    return False


class TextLocationExtractor:
    """Locate countries, regions and cities mentioned in a document."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        repository: Optional[GazetteerRepository] = None,
    ):
        self.session_factory = session_factory
        self.repository = repository or GazetteerRepository()

    def _lookup(self, keys) -> Dict[str, List[GazetteerEntry]]:
        try:
            with self.session_factory() as session:
                return self.repository.lookup(session, keys)
        except SQLAlchemyError as exc:
            logger.warning("Gazetteer lookup failed: %s", exc)
            raise BackendUnavailable("The place name database is not available") from exc

    def find_locations_in_text(self, text: str) -> List[MentionGroup]:
        """Return the located mentions in ``text`` in reading order."""
        if not text or text.isspace():
            return []

        words = _words(text)
        spans = [_span_words(text, words, i) for i in range(len(words))]
        keys = {key for i, word_spans in enumerate(spans) if _is_candidate_start(words[i]) for _, key in word_spans}
        if not keys:
            return []
        entries = self._lookup(keys)

        groups: List[MentionGroup] = []
        i = 0
        while i < len(words):
            if not _is_candidate_start(words[i]):
                i += 1
                continue
            found = self._match_at(text, words, spans, entries, i)
            if found is None:
                i += 1
                continue
            group, consumed = found
            groups.append(group)
            i += consumed
        logger.debug("Found %d place mentions in %d characters", len(groups), len(text))
        return groups

    def _match_at(self, text, words, spans, entries, i) -> Optional[Tuple[MentionGroup, int]]:
        for count, key in spans[i]:
            candidates = entries.get(key)
            if not candidates:
                continue
            start = words[i].start
            end = words[i + count - 1].end

            cities = [c for c in candidates if c.kind == MentionKind.CITY]
            qualified = self._qualified_city(text, words, spans, entries, i + count, cities)
            if qualified is not None:
                city, qualifier, q_start, q_end, q_count = qualified
                tokens = [_token(text, city, start, end), _token(text, qualifier, q_start, q_end)]
                return MentionGroup(found_tokens=tokens), count + q_count

            # Lists are ordered country, region, city (most populous first).
            return MentionGroup(found_tokens=[_token(text, candidates[0], start, end)]), count
        return None

    def _qualified_city(self, text, words, spans, entries, j, cities):
        """Find a ", <region or country>" qualifier right after a city name that contains one of ``cities``."""
        if not cities or j >= len(words):
            return None
        gap = text[words[j - 1].end + 1 : words[j].start]
        if gap.strip() != ",":
            return None
        for count, key in spans[j]:
            for qualifier in entries.get(key, []):
                if qualifier.kind == MentionKind.CITY:
                    continue
                for city in cities:
                    if _qualifies(city, qualifier):
                        return city, qualifier, words[j].start, words[j + count - 1].end, count
        return None


_EXTRACTOR_LOCK = threading.Lock()
_default_extractor: Optional[TextLocationExtractor] = None


def get_default_extractor() -> TextLocationExtractor:
    global _default_extractor
    with _EXTRACTOR_LOCK:
        if _default_extractor is None:
            from db import SessionLocal

            _default_extractor = TextLocationExtractor(SessionLocal)
        return _default_extractor
