"""Bundled screening configuration (solar feasibility questionnaire and rules)."""
