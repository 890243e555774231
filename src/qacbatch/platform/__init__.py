"""Cross-cutting infrastructure: logging and external process control."""
