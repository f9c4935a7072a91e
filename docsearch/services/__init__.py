"""
Service layer components
"""
from .corpus_store import CorpusStore
from .corpus_state import CorpusState, StateHolder

__all__ = ["CorpusStore", "CorpusState", "StateHolder"]
