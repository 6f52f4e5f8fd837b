"""FastAPI application package for the reCAPTCHA gate."""

from .logging import setup_logging

setup_logging()

__all__ = ["setup_logging"]
