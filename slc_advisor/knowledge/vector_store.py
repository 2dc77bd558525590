"""LanceDB-backed knowledge base.

Documents are indexed offline; this module only queries them. Each row holds
the embedding, the document text and the metadata used for filtering.
"""

import json
import logging
from pathlib import Path
from typing import Any

import lancedb
import pyarrow as pa

from slc_advisor.errors import UpstreamError

from .embedder import TitanEmbedder, get_embedder
from .search import CONTENT_TYPE_METADATA, KnowledgeSearch, RetrievedDocument, SearchRequest, SearchResponse

logger = logging.getLogger(__name__)

# Metadata columns that can appear in a where clause
FILTER_COLUMNS = (
    "program",
    "content_type",
    "canvas_section",
    "venture_model",
    "venture_stage",
    "primary_impact_area",
    "primary_industry",
    "impact_mechanism",
    "legal_structure",
    "revenue_source",
    "funding_source",
)

DOCUMENTS_SCHEMA = pa.schema(
    [
        pa.field("vector", pa.list_(pa.float32(), TitanEmbedder.EMBEDDING_DIMENSION)),
        pa.field("id", pa.string()),
        pa.field("title", pa.string()),
        pa.field("content", pa.string()),
        *(pa.field(column, pa.string()) for column in FILTER_COLUMNS),
        pa.field("metadata_json", pa.string()),
    ]
)


def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def build_where_clause(conditions: dict[str, str]) -> str | None:
    """SQL where clause from equality conditions on known columns."""
    parts = []
    for column, value in conditions.items():
        if column not in FILTER_COLUMNS:
            raise ValueError(f"Unknown filter column: {column}")
        parts.append(f"{column} = {_quote(value)}")
    return " AND ".join(parts) or None


class KnowledgeBase(KnowledgeSearch):
    """Semantic search over the LanceDB documents table.

    Args:
        db_path: LanceDB directory
        program: Namespace every query is restricted to
        embedder: Query embedder. If None, uses the cached Titan embedder.
    """

    TABLE_NAME = "documents"

    def __init__(self, db_path: str | Path, program: str = "generic", embedder: TitanEmbedder | None = None):
        self.db_path = Path(db_path)
        self.program = program
        self.db = lancedb.connect(str(self.db_path))
        self.embedder = embedder or get_embedder()
        self._table = None
        logger.info(f"KnowledgeBase opened at {self.db_path} (program={program})")

    @property
    def table(self):
        """The documents table, or None when nothing has been indexed."""
        if self._table is None and self.TABLE_NAME in self.db.table_names():
            self._table = self.db.open_table(self.TABLE_NAME)
        return self._table

    def add_documents(self, documents: list[dict[str, Any]]) -> int:
        """Embed and insert documents.

        Each document needs ``id`` and ``content``; ``title`` and any of the
        filter columns are optional. Other keys go to ``metadata_json``.
        """
        records = []
        for doc in documents:
            extra = {k: v for k, v in doc.items() if k not in ("id", "title", "content", *FILTER_COLUMNS)}
            record = {
                "vector": self.embedder.embed(doc["content"]),
                "id": doc["id"],
                "title": doc.get("title", ""),
                "content": doc["content"],
                "metadata_json": json.dumps(extra),
            }
            for column in FILTER_COLUMNS:
                record[column] = doc.get(column, self.program if column == "program" else "")
            records.append(record)

        if not records:
            return 0
        if self.table is None:
            self._table = self.db.create_table(self.TABLE_NAME, data=records, schema=DOCUMENTS_SCHEMA)
        else:
            self._table.add(records)
        logger.info(f"Indexed {len(records)} documents")
        return len(records)

    def search(self, request: SearchRequest) -> SearchResponse:
        """Query with dimension filters, retrying without them on no match."""
        table = self.table
        if table is None:
            logger.warning(f"Knowledge table '{self.TABLE_NAME}' not found; returning no results")
            return SearchResponse()

        vector = self.embedder.embed(request.query)

        base = {"program": self.program}
        if request.content_type:
            base["content_type"] = CONTENT_TYPE_METADATA.get(request.content_type, request.content_type)
        if request.canvas_section:
            base["canvas_section"] = request.canvas_section
        elif request.venture_model:
            base["venture_model"] = request.venture_model

        rows = self._query(table, vector, {**base, **request.filters}, request.limit)
        if not rows and request.filters:
            logger.info(f"No matches with dimension filters {request.filters}; retrying without them")
            rows = self._query(table, vector, base, request.limit)

        documents = [self._row_to_document(row) for row in rows]
        empty = sum(1 for doc in documents if not doc.content)
        warning = None
        if empty:
            warning = f"{empty} of {len(documents)} results have no content; the index may need rebuilding"

        return SearchResponse(results=documents, total_found=len(documents), warning=warning)

    def _query(self, table, vector: list[float], conditions: dict[str, str], limit: int) -> list[dict[str, Any]]:
        query = table.search(vector)
        where = build_where_clause(conditions)
        if where:
            query = query.where(where)
        try:
            return query.limit(limit).to_list()
        except Exception as e:
            logger.error(f"Knowledge query failed ({where}): {e}")
            raise UpstreamError(f"Knowledge search failed: {e}") from e

    def _row_to_document(self, row: dict[str, Any]) -> RetrievedDocument:
        metadata: dict[str, Any] = {"title": row.get("title") or None}
        for column in FILTER_COLUMNS:
            if row.get(column):
                metadata[column] = row[column]
        try:
            metadata.update(json.loads(row.get("metadata_json") or "{}"))
        except json.JSONDecodeError:
            logger.warning(f"Document {row.get('id')} has malformed metadata_json")

        distance = row.get("_distance")
        score = 1.0 / (1.0 + distance) if distance is not None else 0.0
        return RetrievedDocument(id=row.get("id", ""), score=score, content=row.get("content") or "", metadata=metadata)
