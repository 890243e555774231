"""Application layer: façades wiring features and adapters together."""
