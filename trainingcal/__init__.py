"""Training calendar scheduling and approval engine."""

__version__ = "0.1.0"
