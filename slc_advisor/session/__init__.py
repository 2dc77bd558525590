"""Agent sessions, their broadcast channel and conversation threads."""

from .agent_session import AgentSession
from .broadcast import BroadcastHub, BroadcastMessage
from .threads import Thread, ThreadStore, generate_thread_name

__all__ = [
    "AgentSession",
    "BroadcastHub",
    "BroadcastMessage",
    "Thread",
    "ThreadStore",
    "generate_thread_name",
]
