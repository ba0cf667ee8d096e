"""Track active Claude Code billing windows across multiple sessions."""

__version__ = "0.1.0"