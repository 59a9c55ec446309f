"""Finstart onboarding backend: voice intent extraction, chat assistant and welcome email."""
