"""Configuration loading, filesystem locations, and runtime constants."""
