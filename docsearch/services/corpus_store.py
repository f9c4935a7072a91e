import json
import os
import logging
from typing import Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from docsearch.core.errors import MalformedPersistedState
from docsearch.models.document import GitHubExample, GitHubMeta, IndexedPage, IndexMeta

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)
MetaT = TypeVar("MetaT", bound=BaseModel)

PAGES_FILE = "pages.json"
META_FILE = "meta.json"
GITHUB_EXAMPLES_FILE = "github-examples.json"
GITHUB_META_FILE = "github-meta.json"


class CorpusStore(Generic[RecordT, MetaT]):
    """
    Persists one corpus as two pretty-printed JSON files: an array of records and
    a single metadata object.

    ``load`` never fails the caller. A missing file reads as an empty corpus, and
    so does a file that cannot be parsed, which is what an interrupted checkpoint
    write leaves behind.
    """
    def __init__(self, records_path: str, meta_path: str, record_model: Type[RecordT], meta_model: Type[MetaT]):
        self.records_path = records_path
        self.meta_path = meta_path
        self.record_model = record_model
        self.meta_model = meta_model

    def save(self, records: Sequence[RecordT], meta: MetaT):
        for path in (self.records_path, self.meta_path):
            directory = os.path.dirname(path)
            if directory:
                os.makedirs(directory, exist_ok=True)

        self._write_json(self.records_path, [r.model_dump(mode='json', by_alias=True) for r in records])
        self._write_json(self.meta_path, meta.model_dump(mode='json', by_alias=True))
        logger.info(f"Saved {len(records)} records to {self.records_path}")

    def load(self) -> Tuple[List[RecordT], Optional[MetaT]]:
        records: List[RecordT] = []
        meta: Optional[MetaT] = None

        if os.path.exists(self.records_path):
            try:
                records = self._parse_records(self._read_json(self.records_path))
                logger.info(f"Loaded {len(records)} records from {self.records_path}")
            except MalformedPersistedState as e:
                logger.error(f"Ignoring corrupt corpus file {self.records_path}: {e}")
                records = []

        if os.path.exists(self.meta_path):
            try:
                meta = self._parse_meta(self._read_json(self.meta_path))
            except MalformedPersistedState as e:
                logger.error(f"Ignoring corrupt metadata file {self.meta_path}: {e}")
                meta = None

        return records, meta

    @staticmethod
    def _write_json(path: str, payload):
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)

    @staticmethod
    def _read_json(path: str):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MalformedPersistedState(f"{path}: {e}") from e

    def _parse_records(self, data) -> List[RecordT]:
        if not isinstance(data, list):
            raise MalformedPersistedState(f"expected a JSON array, got {type(data).__name__}")
        try:
            return [self.record_model.model_validate(item) for item in data]
        except ValidationError as e:
            raise MalformedPersistedState(str(e)) from e

    def _parse_meta(self, data) -> MetaT:
        try:
            return self.meta_model.model_validate(data)
        except ValidationError as e:
            raise MalformedPersistedState(str(e)) from e


def docs_store(data_dir: str) -> CorpusStore[IndexedPage, IndexMeta]:
    return CorpusStore(
        os.path.join(data_dir, PAGES_FILE),
        os.path.join(data_dir, META_FILE),
        IndexedPage,
        IndexMeta,
    )


def examples_store(data_dir: str) -> CorpusStore[GitHubExample, GitHubMeta]:
    return CorpusStore(
        os.path.join(data_dir, GITHUB_EXAMPLES_FILE),
        os.path.join(data_dir, GITHUB_META_FILE),
        GitHubExample,
        GitHubMeta,
    )
