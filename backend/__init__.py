"""Onboarding form core: validation, step transitions, API access."""
