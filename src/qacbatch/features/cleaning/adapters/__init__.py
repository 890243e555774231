"""Filesystem-backed adapters for the cleaning feature's ports."""
