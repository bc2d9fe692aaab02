"""Forward Docker logs, stats and events to a Logentries collector."""

__version__ = "0.3.0"
