"""Domain model for plugin cleaning: games, plugins, results, and xEdit I/O rules."""
