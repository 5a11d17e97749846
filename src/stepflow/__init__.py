"""Step-sequenced conversational skills with per-user memory."""

__version__ = "0.1.0"
