"""
Configuration management for the Interest API.

Contains Pydantic settings, the templated configuration resolver and the
logging setup shared by the CLI and the HTTP app.
"""

import logging


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the CLI and the HTTP app."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
