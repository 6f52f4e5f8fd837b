"""Router modules exposed by the gate API."""
from . import recaptcha, system

__all__ = ["recaptcha", "system"]
