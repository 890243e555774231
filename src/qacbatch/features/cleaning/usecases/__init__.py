"""Use cases for the cleaning feature: single-plugin cleaning and session orchestration."""
