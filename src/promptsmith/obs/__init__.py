"""Metrics, telemetry and span recording."""
