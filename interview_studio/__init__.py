"""Interview Studio: interview session lifecycle and AI content generation."""

__version__ = "0.1.0"
