"""
Plant marketplace identification and crop matching.

Identifies plant photos through external services with ordered fallback
and fuzzy-matches the result against marketplace listings.
"""

__version__ = "0.1.0"
