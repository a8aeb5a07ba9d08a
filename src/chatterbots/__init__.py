"""Voice room where a human talks with rotating agent personas."""

__version__ = "0.1.0"
