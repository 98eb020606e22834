"""Input guardrails for the owner dashboard."""

from qrmenu.guardrails.input_validator import InputValidator

__all__ = ["InputValidator"]
