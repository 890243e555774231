"""qacbatch: batch cleaning of Bethesda plugins through xEdit's Quick Auto Clean mode."""

__version__ = "0.1.0"
