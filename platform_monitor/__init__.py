"""External black-box monitor for the EryAI platform."""

__version__ = "0.1.0"
