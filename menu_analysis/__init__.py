"""
Menu Analysis Orchestration Engine.

Turns restaurant menus (pasted text, web pages, photos) into per-item
dietary suitability verdicts produced by an LLM backend.

Structure:
- domain/: Models, extraction, prompts, validation, projection, fingerprints
- infrastructure/: Configuration, logging, AI transports, cache, storage, web
- application/: Analysis client, service facade and factory
- tests/: Test suite
"""

__version__ = "1.0.0"
