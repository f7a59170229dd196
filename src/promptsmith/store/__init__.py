"""Saved-prompt stores."""
