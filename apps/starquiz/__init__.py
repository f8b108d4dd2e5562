"""starquiz: astronomy multiple-choice quiz service."""

__version__ = "0.1.0"
