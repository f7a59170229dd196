"""Prompt analysis, validation and scoring."""
