"""Logging and metrics for tagtrail."""
