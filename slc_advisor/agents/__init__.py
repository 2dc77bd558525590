"""Strands agent wiring: prompts, tools, hooks and model selection."""

from .factory import create_advisor_agent
from .prompts import build_system_prompt, format_canvas_context

__all__ = ["build_system_prompt", "create_advisor_agent", "format_canvas_context"]
