import logging
from dataclasses import dataclass, field
from typing import Dict, Generic, Iterable, Mapping, Optional, Sequence, TypeVar

from docsearch.core.search_index import SearchIndex

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")
MetaT = TypeVar("MetaT")


@dataclass(frozen=True)
class CorpusState(Generic[RecordT, MetaT]):
    """
    One complete, read-only snapshot of a corpus: its records, their metadata
    and the search index built from them.
    """
    records: Sequence[RecordT] = ()
    meta: Optional[MetaT] = None
    index: Optional[SearchIndex] = None
    by_id: Mapping[str, RecordT] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        records: Sequence[RecordT],
        meta: Optional[MetaT],
        fields: Iterable[str],
        boosts: Mapping[str, float],
        fuzzy: float = 0.2,
    ) -> "CorpusState[RecordT, MetaT]":
        records = tuple(records)
        index = SearchIndex.build(records, fields, boosts, fuzzy=fuzzy) if records else None
        by_id: Dict[str, RecordT] = {}
        for record in records:
            # First record with a given id wins
            by_id.setdefault(record.id, record)
        return cls(records=records, meta=meta, index=index, by_id=by_id)

    @property
    def is_empty(self) -> bool:
        return not self.records or self.index is None

    def get(self, record_id: str) -> Optional[RecordT]:
        return self.by_id.get(record_id)


class StateHolder(Generic[RecordT, MetaT]):
    """
    Owns the live snapshot of one corpus. Readers take ``current`` once per
    request; ``swap`` replaces it with a single reference assignment, so a
    reader sees either the old or the new snapshot in full.
    """
    def __init__(self, name: str, state: Optional[CorpusState] = None):
        self.name = name
        self._state: CorpusState = state or CorpusState()

    @property
    def current(self) -> CorpusState:
        return self._state

    def swap(self, new_state: CorpusState) -> CorpusState:
        previous = self._state
        self._state = new_state
        logger.info(f"Swapped {self.name} corpus: {len(previous.records)} -> {len(new_state.records)} records")
        return previous
