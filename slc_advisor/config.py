"""Centralized configuration for the SLC advisor.

Single source of truth for the constants that govern canvas validation,
history batching, knowledge search limits and agent status values.

Design Principles:
- Validation thresholds and history bounds in one place
- Enums for type-safe status values
- Runtime settings read from the environment once, at startup
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

# =============================================================================
# Enums for Type Safety
# =============================================================================


class AgentStatus(Enum):
    """Observable status of an agent session."""

    IDLE = "idle"
    THINKING = "thinking"
    SEARCHING = "searching"
    UPDATING = "updating"
    ERROR = "error"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid status values as strings."""
        return [status.value for status in cls]


class ModelName(Enum):
    """The three sub-models a canvas is grouped into."""

    CUSTOMER = "customer"
    ECONOMIC = "economic"
    IMPACT = "impact"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid model names as strings."""
        return [model.value for model in cls]


class ContentType(Enum):
    """Knowledge-base document categories."""

    METHODOLOGY = "methodology"
    EXAMPLE = "example"
    REFERENCE = "reference"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid content types as strings."""
        return [content_type.value for content_type in cls]


class EditSource(Enum):
    """Who produced a canvas change recorded in history."""

    USER = "user"
    AI = "ai"


class ExportFormat(Enum):
    """Supported canvas export formats."""

    JSON = "json"
    MARKDOWN = "md"
    TEXT = "txt"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid export formats as strings."""
        return [fmt.value for fmt in cls]


# =============================================================================
# Validation Thresholds
# =============================================================================

# Minimum characters for a canvas section to count as complete
SECTION_MIN_LENGTH = 20

# Minimum characters for an impact chain field to count as complete
IMPACT_FIELD_MIN_LENGTH = 10

# Venture dimensions below this confidence are ignored for filtering
# unless the user confirmed them
CONFIDENCE_THRESHOLD = 0.7


# =============================================================================
# History Configuration
# =============================================================================

# Hard cap on undo entries kept per canvas
HISTORY_LIMIT = 500

# Most recent entries kept as full snapshots; older ones become diffs
FULL_SNAPSHOT_COUNT = 20

# Consecutive AI edits closer together than this collapse into one entry
AI_BATCH_WINDOW_SECONDS = 30.0


# =============================================================================
# Tool Limits
# =============================================================================

METHODOLOGY_SEARCH_DEFAULT = 5
EXAMPLE_SEARCH_DEFAULT = 3
SEARCH_MAX_LIMIT = 10
KNOWLEDGE_SEARCH_DEFAULT = 5
KNOWLEDGE_SEARCH_MAX = 20

THREAD_CONTEXT_DEFAULT = 10
THREAD_CONTEXT_MAX = 50

# Documents retrieved up front for each user message
RAG_CONTEXT_LIMIT = 3


# =============================================================================
# Canvas Defaults
# =============================================================================

DEFAULT_CANVAS_NAME = "Untitled Canvas"

# Export format identifier written into JSON exports
EXPORT_FORMAT_NAME = "social-lean-canvas"
EXPORT_FORMAT_VERSION = "1.0"


# =============================================================================
# Runtime Settings
# =============================================================================


@dataclass(frozen=True)
class AdvisorSettings:
    """Runtime settings resolved from environment variables.

    Attributes:
        data_dir: Root directory holding one sub-directory per canvas
        knowledge_db: LanceDB directory for the knowledge base
        program: Knowledge-base namespace (e.g. a partner programme)
    """

    data_dir: Path
    knowledge_db: Path
    program: str = "generic"

    @classmethod
    def from_env(cls) -> "AdvisorSettings":
        """Create settings from environment variables."""
        data_dir = Path(os.getenv("SLC_DATA_DIR", "./data"))
        return cls(
            data_dir=data_dir,
            knowledge_db=Path(os.getenv("SLC_KNOWLEDGE_DB", str(data_dir / "knowledge"))),
            program=os.getenv("SLC_PROGRAM", "generic"),
        )
