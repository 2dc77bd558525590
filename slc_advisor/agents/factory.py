"""Advisor agent construction."""

import logging

from strands import Agent
from strands.tools.executors import SequentialToolExecutor

from .hooks import AdvisorAgentHooks
from .model_provider import create_model
from .tools import ToolRunner, build_advisor_tools

logger = logging.getLogger(__name__)

AGENT_NAME = "slc_advisor"


def create_advisor_agent(system_prompt: str, runner: ToolRunner, model=None) -> Agent:
    """Create the advisor agent for one session.

    Tool calls run sequentially so each canvas write is broadcast before the
    next tool starts.

    Args:
        system_prompt: Initial system prompt; sessions replace it every turn
        runner: Session that executes the advisor tools
        model: Strands model. If None, created from LLM_PROVIDER.
    """
    tools = build_advisor_tools(runner)
    agent = Agent(
        system_prompt=system_prompt,
        name=AGENT_NAME,
        model=model if model is not None else create_model(),
        tools=tools,
        hooks=[AdvisorAgentHooks()],
        tool_executor=SequentialToolExecutor(),
        callback_handler=None,
    )

    logger.info(f"Created {AGENT_NAME} with tools={[t.tool_name for t in tools]}")
    return agent
