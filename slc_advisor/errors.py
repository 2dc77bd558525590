"""Error types for the SLC advisor.

Rule violations (unknown field, unmet dependency, short content) are not
exceptions: managers return them as data on ``UpdateResult`` and
``ValidationResult`` tagged with an ``IssueCode``. The exceptions below are
reserved for conditions the caller cannot fix by editing content.
"""

from enum import Enum


class IssueCode(Enum):
    """Classification carried by every validation issue."""

    VALIDATION = "validation"
    DEPENDENCY = "dependency"
    CONTENT_TOO_SHORT = "content_too_short"


class AdvisorError(Exception):
    """Base class for all advisor exceptions."""

    pass


class UnknownToolError(AdvisorError):
    """Raised when the agent asks for a tool that is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class ToolInputError(AdvisorError):
    """Raised when tool input fails schema validation.

    Attributes:
        tool_name: Name of the tool whose input was rejected
        fields: Dotted paths of the offending input fields
    """

    def __init__(self, tool_name: str, fields: list[str], details: str = ""):
        self.tool_name = tool_name
        self.fields = fields
        message = f"Invalid input for {tool_name}: {', '.join(fields) or 'input'}"
        if details:
            message = f"{message} ({details})"
        super().__init__(message)


class CanvasNotFoundError(AdvisorError):
    """Raised when a canvas id has no persisted data."""

    pass


class ThreadNotFoundError(AdvisorError):
    """Raised when a conversation thread does not exist."""

    pass


class UpstreamError(AdvisorError):
    """Raised when the LLM provider or knowledge search fails."""

    pass


class SessionBusyError(AdvisorError):
    """Raised when a message arrives while a turn is already in flight."""

    pass


class StoreCorruptedError(AdvisorError):
    """Raised when persisted canvas data cannot be parsed."""

    pass
