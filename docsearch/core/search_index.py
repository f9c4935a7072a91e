import re
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from pydantic.alias_generators import to_snake
from rank_bm25 import BM25Plus

logger = logging.getLogger(__name__)

DOCS_FIELDS = ["title", "headings", "text", "codeBlocks"]
DOCS_BOOSTS = {"title": 3.0, "headings": 2.0, "text": 1.0, "codeBlocks": 1.0}

EXAMPLE_FIELDS = ["title", "description", "content", "relatedClasses", "relatedMethods"]
EXAMPLE_BOOSTS = {
    "title": 3.0,
    "relatedClasses": 2.0,
    "relatedMethods": 2.0,
    "description": 1.5,
    "content": 1.0,
}

EXACT_WEIGHT = 1.0
PREFIX_WEIGHT = 0.375
FUZZY_WEIGHT = 0.45


@dataclass
class SearchHit:
    id: str
    score: float


def tokenize(text: str) -> List[str]:
    """Lowercases and splits on anything that is not a letter or a digit."""
    return re.findall(r"[^\W_]+", text.lower())


def field_text(record, field: str) -> str:
    """Reads a field by its camelCase name from a model or a dict; lists are space-joined."""
    if isinstance(record, Mapping):
        value = record.get(field)
    else:
        value = getattr(record, to_snake(field), None)
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return str(value)


def bounded_edit_distance(a: str, b: str, max_distance: int) -> Optional[int]:
    """Levenshtein distance between ``a`` and ``b``, or None once it exceeds ``max_distance``."""
    if abs(len(a) - len(b)) > max_distance:
        return None
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (char_a != char_b),
            ))
        if min(current) > max_distance:
            return None
        previous = current
    distance = previous[-1]
    return distance if distance <= max_distance else None


class SearchIndex:
    """
    In-memory lexical index over one corpus.

    Every indexed field gets its own BM25 model. A query term is expanded into
    the vocabulary terms it matches exactly, as a prefix, or within a bounded
    edit distance, and a record's score is the boost-weighted sum of its field
    scores over those expansions. Only records containing at least one expanded
    term are returned.

    The index is immutable; a changed corpus means building a new one.
    """
    def __init__(
        self,
        ids: List[str],
        models: Dict[str, BM25Plus],
        boosts: Mapping[str, float],
        fuzzy: float = 0.2,
        prefix: bool = True,
    ):
        self.ids = ids
        self.models = models
        self.boosts = dict(boosts)
        self.fuzzy = fuzzy
        self.prefix = prefix
        self.vocabulary = sorted({term for model in models.values() for term in model.idf})

    @classmethod
    def build(
        cls,
        records: Sequence,
        fields: Iterable[str],
        boosts: Optional[Mapping[str, float]] = None,
        fuzzy: float = 0.2,
        prefix: bool = True,
    ) -> "SearchIndex":
        boosts = boosts or {}
        ids = [field_text(record, "id") for record in records]
        models: Dict[str, BM25Plus] = {}

        if records:
            for field in fields:
                corpus = [tokenize(field_text(record, field)) for record in records]
                # An all-empty field has an average length of zero, which BM25 cannot score
                if not any(corpus):
                    logger.debug(f"Field '{field}' is empty for every record, not indexed")
                    continue
                models[field] = BM25Plus(corpus)

        logger.info(f"Search index built with {len(ids)} documents over fields {list(models)}")
        return cls(ids, models, {field: boosts.get(field, 1.0) for field in models}, fuzzy, prefix)

    def __len__(self) -> int:
        return len(self.ids)

    def expand_term(self, term: str) -> List[Tuple[str, float]]:
        """Vocabulary terms matched by ``term`` with their weights, best weight per term."""
        weights: Dict[str, float] = {}
        max_distance = round(len(term) * self.fuzzy)

        for candidate in self.vocabulary:
            weight = 0.0
            if candidate == term:
                weight = EXACT_WEIGHT
            else:
                if self.prefix and candidate.startswith(term):
                    weight = PREFIX_WEIGHT * len(term) / len(candidate)
                if max_distance > 0:
                    distance = bounded_edit_distance(term, candidate, max_distance)
                    if distance is not None:
                        weight = max(weight, FUZZY_WEIGHT * len(term) / (len(term) + distance))
            if weight > 0:
                weights[candidate] = weight

        return list(weights.items())

    def search(self, query: str) -> List[SearchHit]:
        """Ranked hits, best first. Equal scores keep the order records were indexed in."""
        terms = tokenize(query)
        if not terms or not self.ids or not self.models:
            return []

        scores = np.zeros(len(self.ids))
        matched = np.zeros(len(self.ids), dtype=bool)

        for term in terms:
            for candidate, weight in self.expand_term(term):
                for field, model in self.models.items():
                    if candidate not in model.idf:
                        continue
                    matched |= np.array([candidate in freqs for freqs in model.doc_freqs], dtype=bool)
                    scores += self.boosts[field] * weight * model.get_scores([candidate])

        order = sorted(np.flatnonzero(matched).tolist(), key=lambda i: -scores[i])
        return [SearchHit(id=self.ids[i], score=float(scores[i])) for i in order]
