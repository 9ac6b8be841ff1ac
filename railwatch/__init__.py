"""railwatch: deployment state tracking for the Railway platform."""

__version__ = "0.1.0"
