"""AI advisor for the Social Lean Canvas.

Canvas state with dependency-gated sub-models, an agent session that edits
the canvas through tools, knowledge-base retrieval and client-side history.
"""

__version__ = "0.1.0"
