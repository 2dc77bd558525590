"""Tests for query shaping, prompt context and the LanceDB knowledge base."""

import json
from unittest.mock import MagicMock, patch

import pytest
from conftest import make_document

from slc_advisor.errors import UpstreamError
from slc_advisor.knowledge.embedder import TitanEmbedder
from slc_advisor.knowledge.search import (
    QueryIntent,
    SearchRequest,
    build_rag_context,
    dimension_filter,
    example_filters,
    parse_query_intent,
    request_for_intent,
)
from slc_advisor.knowledge.vector_store import KnowledgeBase, build_where_clause


class TestParseQueryIntent:
    @pytest.mark.parametrize(
        "message,expected",
        [
            (
                "Show me examples of revenue models",
                QueryIntent(type="examples", target_section="revenue", target_model="economic"),
            ),
            (
                "What is a theory of change?",
                QueryIntent(type="methodology", target_section="impact", target_model="impact"),
            ),
            (
                "How do I write a purpose statement?",
                QueryIntent(type="methodology", target_section="purpose", target_model=None),
            ),
            (
                "Let's look at the economic model",
                QueryIntent(type="general", target_section=None, target_model="economic"),
            ),
            ("Hello there", QueryIntent()),
        ],
    )
    def test_classification(self, message, expected):
        assert parse_query_intent(message) == expected


class TestFilters:
    def test_dimension_filter_uses_primary_values(self):
        dimensions = {"ventureStage": "growth", "impactAreas": ["health", "food"], "industries": ["retail"]}
        assert dimension_filter(dimensions) == {
            "venture_stage": "growth",
            "primary_impact_area": "health",
            "primary_industry": "retail",
        }

    def test_dimension_filter_ignores_other_dimensions(self):
        assert dimension_filter({"legalStructure": "cooperative"}) == {}

    def test_example_filters_drop_empty_values(self):
        assert example_filters({"stage": "idea", "industry": None, "fundingSource": "vc"}) == {
            "venture_stage": "idea",
            "funding_source": "vc",
        }
        assert example_filters(None) == {}


class TestRequestForIntent:
    def test_section_wins_over_model(self):
        intent = QueryIntent(type="methodology", target_section="revenue", target_model="economic")
        request = request_for_intent("pricing help", intent, {}, 3)
        assert request.content_type == "methodology"
        assert request.canvas_section == "revenue"
        assert request.venture_model is None

    def test_model_only(self):
        intent = QueryIntent(type="general", target_model="impact")
        request = request_for_intent("theory of change", intent, {"ventureStage": "idea"}, 3)
        assert request.content_type is None
        assert request.venture_model == "impact"
        assert request.filters == {"venture_stage": "idea"}
        assert request.limit == 3


class TestBuildRagContext:
    def test_headers_by_content_type(self):
        context = build_rag_context(
            [
                make_document(
                    content="Grow with co-ops.",
                    title="Fair Trade Co",
                    content_type="canvas-example",
                    venture_stage="growth",
                ),
                make_document(
                    "doc-2",
                    content="Start from the issue.",
                    title="Impact 101",
                    content_type="methodology",
                    canvas_section="impact",
                ),
                make_document("doc-3", content="Glossary entry."),
            ]
        )
        parts = context.split("\n\n---\n\n")
        assert parts[0] == "[Fair Trade Co] (Example, growth stage)\nGrow with co-ops."
        assert parts[1] == "[Impact 101] (Methodology, impact)\nStart from the issue."
        assert parts[2] == "[Document 3]\nGlossary entry."

    def test_empty(self):
        assert build_rag_context([]) == ""


class TestWhereClause:
    def test_conditions_joined(self):
        clause = build_where_clause({"program": "generic", "content_type": "methodology"})
        assert clause == "program = 'generic' AND content_type = 'methodology'"

    def test_quotes_escaped(self):
        assert build_where_clause({"primary_industry": "farmers' markets"}) == (
            "primary_industry = 'farmers'' markets'"
        )

    def test_unknown_column(self):
        with pytest.raises(ValueError, match="Unknown filter column"):
            build_where_clause({"content; DROP TABLE": "x"})

    def test_empty(self):
        assert build_where_clause({}) is None


class TestKnowledgeBase:
    """KnowledgeBase against a mocked LanceDB connection."""

    @pytest.fixture
    def query(self):
        query = MagicMock()
        query.where.return_value = query
        query.limit.return_value = query
        return query

    @pytest.fixture
    def db(self, query):
        table = MagicMock()
        table.search.return_value = query
        db = MagicMock()
        db.table_names.return_value = ["documents"]
        db.open_table.return_value = table
        return db

    @pytest.fixture
    def embedder(self):
        embedder = MagicMock()
        embedder.embed.return_value = [0.1, 0.2, 0.3]
        return embedder

    @pytest.fixture
    def knowledge_base(self, tmp_path, db, embedder):
        with patch("slc_advisor.knowledge.vector_store.lancedb.connect", return_value=db):
            yield KnowledgeBase(tmp_path / "kb", program="generic", embedder=embedder)

    @staticmethod
    def _row(doc_id="m1", content="Write the purpose first.", **columns):
        return {
            "id": doc_id,
            "title": "Purpose Guide",
            "content": content,
            "content_type": "methodology",
            "metadata_json": '{"source": "handbook"}',
            "_distance": 1.0,
            **columns,
        }

    def test_search_maps_rows(self, knowledge_base, query):
        query.to_list.return_value = [self._row()]

        response = knowledge_base.search(SearchRequest(query="purpose", content_type="methodology", limit=2))

        assert response.total_found == 1
        doc = response.results[0]
        assert doc.id == "m1"
        assert doc.score == 0.5
        assert doc.metadata == {"title": "Purpose Guide", "content_type": "methodology", "source": "handbook"}
        query.where.assert_called_once_with("program = 'generic' AND content_type = 'methodology'")
        query.limit.assert_called_once_with(2)

    def test_example_content_type_maps_to_stored_value(self, knowledge_base, query):
        query.to_list.return_value = []
        knowledge_base.search(SearchRequest(query="co-ops", content_type="example"))
        assert "content_type = 'canvas-example'" in query.where.call_args.args[0]

    def test_falls_back_without_dimension_filters(self, knowledge_base, query):
        query.to_list.side_effect = [[], [self._row()]]

        response = knowledge_base.search(
            SearchRequest(query="pricing", canvas_section="revenue", filters={"venture_stage": "idea"})
        )

        assert response.total_found == 1
        first, second = [call.args[0] for call in query.where.call_args_list]
        assert "venture_stage = 'idea'" in first
        assert second == "program = 'generic' AND canvas_section = 'revenue'"

    def test_no_fallback_without_filters(self, knowledge_base, query):
        query.to_list.return_value = []
        response = knowledge_base.search(SearchRequest(query="pricing"))
        assert response.results == []
        assert query.to_list.call_count == 1

    def test_empty_content_warning(self, knowledge_base, query):
        query.to_list.return_value = [self._row(), self._row("m2", content="")]
        response = knowledge_base.search(SearchRequest(query="purpose"))
        assert response.warning == "1 of 2 results have no content; the index may need rebuilding"

    def test_missing_table(self, knowledge_base, db, embedder):
        db.table_names.return_value = []
        response = knowledge_base.search(SearchRequest(query="purpose"))
        assert response.results == []
        embedder.embed.assert_not_called()

    def test_query_failure_is_upstream_error(self, knowledge_base, query):
        query.to_list.side_effect = OSError("index unavailable")
        with pytest.raises(UpstreamError, match="Knowledge search failed"):
            knowledge_base.search(SearchRequest(query="purpose"))

    def test_add_documents_creates_table(self, knowledge_base, db, embedder):
        db.table_names.return_value = []
        count = knowledge_base.add_documents(
            [{"id": "x1", "content": "Co-op basics", "content_type": "methodology", "author": "team"}]
        )

        assert count == 1
        records = db.create_table.call_args.kwargs["data"]
        assert records[0]["program"] == "generic"
        assert records[0]["content_type"] == "methodology"
        assert records[0]["metadata_json"] == '{"author": "team"}'
        embedder.embed.assert_called_once_with("Co-op basics")


class TestTitanEmbedder:
    @pytest.fixture
    def client(self):
        client = MagicMock()
        body = MagicMock()
        body.read.return_value = json.dumps({"embedding": [0.5, 0.25]})
        client.invoke_model.return_value = {"body": body}
        return client

    def test_embed(self, client):
        embedder = TitanEmbedder(region="us-west-2", client=client)
        assert embedder.embed("community fridges") == [0.5, 0.25]
        kwargs = client.invoke_model.call_args.kwargs
        assert kwargs["modelId"] == TitanEmbedder.MODEL_ID
        assert json.loads(kwargs["body"]) == {"inputText": "community fridges"}

    def test_long_text_truncated(self, client):
        TitanEmbedder(client=client).embed("x" * (TitanEmbedder.MAX_CHARS + 10))
        body = json.loads(client.invoke_model.call_args.kwargs["body"])
        assert len(body["inputText"]) == TitanEmbedder.MAX_CHARS

    def test_empty_text(self, client):
        with pytest.raises(ValueError):
            TitanEmbedder(client=client).embed("   ")

    def test_bedrock_failure(self, client):
        client.invoke_model.side_effect = RuntimeError("throttled")
        with pytest.raises(UpstreamError, match="Embedding failed"):
            TitanEmbedder(client=client).embed("community fridges")
