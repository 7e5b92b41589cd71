"""ProjectHub - project tracking API"""

__version__ = "1.0.0"
