"""Domain layer: normalization, folding, and the log-backed repositories."""
