"""context-doctor - lint LLM context files and the docs they reference."""

__version__ = "0.1.0"
