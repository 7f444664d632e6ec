"""Context-aware behavioral reminders for chat sessions."""

__version__ = "0.1.0"
