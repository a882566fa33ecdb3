"""Meal ticket issuance and consumption service."""
