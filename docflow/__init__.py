# docflow/__init__.py
# Batch document pipelines around external extraction, LLM and media tools.

__version__ = "0.1.0"
