"""Streaming chat gateway for diagram-assistant LLM providers."""
