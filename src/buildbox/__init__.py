"""buildbox - Orchestrate multi-step product builds, natively or inside Docker."""

__version__ = "0.1.0"
