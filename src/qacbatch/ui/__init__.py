"""User interfaces for qacbatch."""
