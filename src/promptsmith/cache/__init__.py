"""Cache backends and the prompt result cache."""
