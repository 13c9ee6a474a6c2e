# This project was developed with assistance from AI tools.
"""Lead lifecycle and eligibility rules engine."""

__version__ = "0.1.0"
