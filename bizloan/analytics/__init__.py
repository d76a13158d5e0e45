"""Scenario loading, evaluation pipeline and report export."""
