"""
nclex-study: spaced repetition and adaptive exam simulations for NCLEX prep.
"""

__version__ = "0.1.0"
