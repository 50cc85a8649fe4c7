# fairplay/__init__.py
"""
FairPlay: dark pattern detection and patching backed by a local language model.
"""

__version__ = "0.3.0"
