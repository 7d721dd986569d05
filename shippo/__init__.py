"""shippo - polyglot release packaging orchestrator."""

__version__ = "0.1.0"
