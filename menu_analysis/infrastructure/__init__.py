"""Adapters for providers, storage and configuration."""
