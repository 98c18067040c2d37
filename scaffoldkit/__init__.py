"""scaffoldkit -- blueprint-driven project scaffolding."""

__version__ = "0.1.0"
