"""
BorderWX - cross-border weather alert normalization.
"""

__version__ = "0.2.0"
