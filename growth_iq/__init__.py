"""Legacy Growth IQ: business assessment scoring and report service."""

__version__ = "1.0.0"
