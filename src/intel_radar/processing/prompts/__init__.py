"""Prompt templates."""

__all__ = ["intel_prompt"]
