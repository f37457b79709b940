"""
LinkDrop

Download authorization and share-link lifecycle engine.
"""

__version__ = "0.1.0"
