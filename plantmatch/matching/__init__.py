"""
Matching Package

Fuzzy matching of an identified plant name against marketplace listings.

Components:
- NameNormalizer: Canonical form for free-text plant names
- AliasTable: Synonym and scientific-name lookup with runtime additions
- FuzzyMatcher: Per-listing scoring and tier assignment
"""

from plantmatch.matching.base import CatalogListing, ComponentScores, MatchCandidate
from plantmatch.matching.name_normalizer import NameNormalizer, normalize_name
from plantmatch.matching.similarity import compare_two_strings
from plantmatch.matching.alias_table import AliasEntry, AliasTable
from plantmatch.matching.fuzzy_matcher import FuzzyMatcher, partition_by_tier

__all__ = [
    "CatalogListing",
    "ComponentScores",
    "MatchCandidate",
    "NameNormalizer",
    "normalize_name",
    "compare_two_strings",
    "AliasEntry",
    "AliasTable",
    "FuzzyMatcher",
    "partition_by_tier",
]
