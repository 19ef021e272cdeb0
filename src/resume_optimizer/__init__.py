"""LLM-backed resume optimization pipeline."""

__version__ = "0.1.0"
