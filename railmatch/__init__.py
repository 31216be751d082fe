"""RailMatch: freight request / rail-car offer matching service."""

__version__ = "1.0.0"
