"""Tests for the Strands tool wrappers, agent hooks, prompts and model provider."""

import json
from unittest.mock import MagicMock, patch

import pytest
from conftest import IMPACT_TEXT, SECTION_TEXT

from slc_advisor.agents.factory import AGENT_NAME, create_advisor_agent
from slc_advisor.agents.hooks import AdvisorAgentHooks
from slc_advisor.agents.model_provider import (
    _PROVIDER_FACTORIES,
    PROVIDER_DEFAULTS,
    LLMProvider,
    create_model,
    get_active_provider,
    get_model_id,
)
from slc_advisor.agents.prompts import NEW_CANVAS_CONTEXT, build_system_prompt, format_canvas_context
from slc_advisor.agents.tools import CANCELLED_MESSAGE, build_advisor_tools
from slc_advisor.errors import UnknownToolError
from slc_advisor.tools.registry import TOOL_REGISTRY


@pytest.fixture
def runner():
    runner = MagicMock()
    runner.cancelled = False
    runner.run_tool.return_value = {"success": True}
    return runner


@pytest.fixture
def tools(runner):
    return {t.tool_name: t for t in build_advisor_tools(runner)}


class TestAdvisorTools:
    def test_one_wrapper_per_registered_tool(self, tools):
        assert set(tools) == set(TOOL_REGISTRY)

    def test_forwards_to_runner(self, tools, runner):
        result = tools["update_impact_field"]("issue", IMPACT_TEXT["issue"])
        assert json.loads(result) == {"success": True}
        runner.run_tool.assert_called_once_with(
            "update_impact_field", {"field": "issue", "content": IMPACT_TEXT["issue"]}
        )

    def test_camel_case_arguments(self, tools, runner):
        tools["search_knowledge_base"]("grants")
        runner.run_tool.assert_called_with("search_knowledge_base", {"query": "grants", "contentType": "all", "limit": 5})

        tools["get_thread_context"]("messages", thread_id="t1")
        runner.run_tool.assert_called_with("get_thread_context", {"mode": "messages", "threadId": "t1", "limit": 10})

    def test_advisor_errors_returned_as_data(self, tools, runner):
        runner.run_tool.side_effect = UnknownToolError("update_purpose")
        result = json.loads(tools["update_purpose"](SECTION_TEXT["purpose"]))
        assert result == {"success": False, "error": "Unknown tool: update_purpose"}

    def test_cancelled_turn_runs_nothing(self, tools, runner):
        runner.cancelled = True
        result = json.loads(tools["update_purpose"](SECTION_TEXT["purpose"]))
        assert result == {"success": False, "error": CANCELLED_MESSAGE}
        runner.run_tool.assert_not_called()


class TestAdvisorAgentHooks:
    @staticmethod
    def _tool_event(name):
        event = MagicMock()
        event.tool_use = {"name": name}
        return event

    def test_counts_canvas_writes(self):
        hooks = AdvisorAgentHooks()
        hooks._on_before_invocation(MagicMock())
        for name in ("get_canvas", "update_purpose", "update_impact_field"):
            hooks._on_before_tool(self._tool_event(name))
            hooks._on_after_tool(self._tool_event(name))

        assert hooks.tool_calls == ["get_canvas", "update_purpose", "update_impact_field"]
        assert hooks.canvas_writes == 2

    def test_new_turn_resets_calls(self):
        hooks = AdvisorAgentHooks()
        hooks._on_before_tool(self._tool_event("update_purpose"))
        hooks._on_before_invocation(MagicMock())
        assert hooks.tool_calls == []

    def test_after_invocation_records_time(self):
        hooks = AdvisorAgentHooks()
        hooks._on_before_invocation(MagicMock())
        hooks._on_after_invocation(MagicMock())
        assert hooks.execution_time >= 0.0


class TestPrompts:
    def test_new_canvas_gets_welcome(self, canvas):
        prompt = build_system_prompt(canvas.get_full_canvas())
        assert NEW_CANVAS_CONTEXT in prompt
        assert "{canvas_context}" not in prompt
        assert "Tone Profile: beginner" in prompt

    def test_filled_sections_and_empty_markers(self, canvas):
        canvas.update_section("purpose", SECTION_TEXT["purpose"])
        canvas.update_impact_field("issue", IMPACT_TEXT["issue"])

        context = format_canvas_context(canvas.get_full_canvas())
        assert f"**Purpose:** {SECTION_TEXT['purpose']}" in context
        assert "- Customers: (empty)" in context
        assert f"- Issue: {IMPACT_TEXT['issue']}" in context
        assert "**Key Metrics:** (complete after other sections)" in context

    def test_rag_context_section(self, canvas):
        prompt = build_system_prompt(canvas.get_full_canvas(), rag_context="[Guide]\nStart small.")
        assert "## Relevant Knowledge" in prompt
        assert "[Guide]\nStart small." in prompt

    def test_tone_profiles(self, canvas):
        state = canvas.get_full_canvas()
        assert "Tone Profile: experienced" in build_system_prompt(state, tone="experienced")
        assert "Tone Profile: beginner" in build_system_prompt(state, tone="unknown")


class TestModelProvider:
    def test_default_is_bedrock(self, monkeypatch):
        monkeypatch.delenv("LLM_PROVIDER", raising=False)
        assert get_active_provider() is LLMProvider.BEDROCK

    def test_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "OpenAI")
        assert get_active_provider() is LLMProvider.OPENAI

    def test_invalid_raises(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "banana")
        with pytest.raises(ValueError, match="Unknown LLM_PROVIDER 'banana'"):
            get_active_provider()

    def test_model_id_from_env(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_MODEL_ID", "my-custom-model")
        assert get_model_id(LLMProvider.ANTHROPIC) == "my-custom-model"

    def test_model_id_default(self, monkeypatch):
        monkeypatch.delenv("OLLAMA_MODEL_ID", raising=False)
        assert get_model_id(LLMProvider.OLLAMA) == PROVIDER_DEFAULTS[LLMProvider.OLLAMA]

    def test_create_model_dispatches(self, monkeypatch):
        factory = MagicMock(return_value="model")
        monkeypatch.setitem(_PROVIDER_FACTORIES, LLMProvider.OPENAI, factory)
        monkeypatch.setenv("LLM_PROVIDER", "openai")
        monkeypatch.setenv("DEFAULT_MAX_TOKENS", "2048")
        monkeypatch.delenv("OPENAI_MODEL_ID", raising=False)

        assert create_model(temperature=0.2) == "model"
        factory.assert_called_once_with(model_id="gpt-4o", max_tokens=2048, streaming=True, temperature=0.2)

    def test_bedrock_requires_region(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "bedrock")
        monkeypatch.delenv("AWS_REGION", raising=False)
        with pytest.raises(ValueError, match="AWS_REGION is not set"):
            create_model()


class TestCreateAdvisorAgent:
    def test_agent_wiring(self, runner):
        model = MagicMock()
        with patch("slc_advisor.agents.factory.Agent") as agent_cls:
            create_advisor_agent("You are an advisor.", runner, model=model)

        kwargs = agent_cls.call_args.kwargs
        assert kwargs["system_prompt"] == "You are an advisor."
        assert kwargs["name"] == AGENT_NAME
        assert kwargs["model"] is model
        assert {t.tool_name for t in kwargs["tools"]} == set(TOOL_REGISTRY)
        assert isinstance(kwargs["hooks"][0], AdvisorAgentHooks)
