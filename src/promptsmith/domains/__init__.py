"""Domain profiles, refinement rules and the optimizer stage."""
