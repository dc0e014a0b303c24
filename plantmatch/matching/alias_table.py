"""
Alias Table

Curated mapping from canonical common names to synonyms and scientific
names. Recovers matches that plain string similarity misses, such as a
"Tomato" identification against a "Lycopersicon esculentum" listing.

Data sources:
- Built-in defaults (common marketplace crops)
- Optional JSON file: {"canonical name": ["synonym", ...], ...}
- Runtime additions through add_aliases()

Updates are copy-on-write: writers build a new immutable snapshot under a
lock and swap it in, readers use whatever snapshot they picked up and
never block.
"""

import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from plantmatch.core.config import ALIAS_BOOST
from plantmatch.core.exceptions import AliasConfigurationError
from plantmatch.matching.name_normalizer import NameNormalizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AliasEntry:
    """Canonical name with its synonym set (all normalized)."""
    canonical_name: str
    synonyms: FrozenSet[str]

    @property
    def all_names(self) -> FrozenSet[str]:
        return self.synonyms | {self.canonical_name}

    def to_dict(self) -> Dict[str, object]:
        return {
            "canonicalName": self.canonical_name,
            "synonyms": sorted(self.synonyms),
        }


class AliasTable:
    """
    Thread-safe alias lookup.

    Usage:
        table = AliasTable()
        table.score_alias("tomato", "Lycopersicon esculentum")   # 0.9
        table.add_aliases("okra", ["abelmoschus esculentus", "bhindi"])
    """

    # Default aliases for common crops. Keep synonyms specific: matching uses
    # substring containment, so short generic words would match unrelated
    # listings.
    DEFAULT_ALIASES: Dict[str, List[str]] = {
        "tomato": ["lycopersicon esculentum", "solanum lycopersicum"],
        "potato": ["solanum tuberosum", "irish potato", "white potato"],
        "rice": ["oryza sativa", "paddy", "dhan"],
        "wheat": ["triticum aestivum", "common wheat"],
        "corn": ["zea mays", "maize", "indian corn"],
        "mango": ["mangifera indica", "king of fruits"],
        "banana": ["musa", "plantain"],
        "coconut": ["cocos nucifera", "coco palm"],
        "neem": ["azadirachta indica", "indian lilac"],
        "tulsi": ["ocimum tenuiflorum", "holy basil"],
        "rose": ["rosa", "gulab"],
        "jasmine": ["jasminum", "mogra", "chameli"],
        "eggplant": ["solanum melongena", "aubergine", "brinjal"],
        "onion": ["allium cepa"],
        "garlic": ["allium sativum"],
        "cucumber": ["cucumis sativus"],
        "carrot": ["daucus carota"],
        "spinach": ["spinacia oleracea", "palak"],
        "soybean": ["glycine max", "soya bean"],
        "sunflower": ["helianthus annuus"],
    }

    def __init__(
        self,
        aliases: Optional[Mapping[str, Iterable[str]]] = None,
        boost: float = ALIAS_BOOST,
        name_normalizer: Optional[NameNormalizer] = None,
    ):
        """
        Initialize alias table.

        Args:
            aliases: Canonical name -> synonyms; defaults to DEFAULT_ALIASES
            boost: Score returned for names sharing an entry
            name_normalizer: Canonicalizer for entries and lookups; default stoplist if None
        """
        self.boost = boost
        self.name_normalizer = name_normalizer or NameNormalizer()
        self._lock = threading.Lock()
        self._entries: Mapping[str, AliasEntry] = self._build_entries(
            self.DEFAULT_ALIASES if aliases is None else aliases
        )

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        include_defaults: bool = True,
        boost: float = ALIAS_BOOST,
        name_normalizer: Optional[NameNormalizer] = None,
    ) -> "AliasTable":
        """Create a table from a JSON alias file."""
        table = cls(
            aliases=None if include_defaults else {},
            boost=boost,
            name_normalizer=name_normalizer,
        )
        table.load_file(path)
        return table

    # === Lookup ===

    def score_alias(self, name_a: Optional[str], name_b: Optional[str]) -> float:
        """
        Alias boost for two names.

        Returns the boost if both normalized names fall into the same entry
        (substring containment in either direction against the canonical
        name or any synonym), else 0.0. Symmetric in its arguments.
        """
        normalized_a = self.name_normalizer.normalize(name_a)
        normalized_b = self.name_normalizer.normalize(name_b)
        if not normalized_a or not normalized_b:
            return 0.0

        entries = self._entries
        for entry in entries.values():
            if self._belongs(normalized_a, entry) and self._belongs(normalized_b, entry):
                return self.boost
        return 0.0

    def resolve(self, name: Optional[str]) -> List[str]:
        """Canonical names whose entry contains the given name."""
        normalized = self.name_normalizer.normalize(name)
        if not normalized:
            return []
        entries = self._entries
        return [
            canonical for canonical, entry in entries.items()
            if self._belongs(normalized, entry)
        ]

    def get(self, canonical_name: str) -> Optional[AliasEntry]:
        return self._entries.get(self.name_normalizer.normalize(canonical_name))

    def entries(self) -> List[AliasEntry]:
        """Snapshot of all entries."""
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, canonical_name: object) -> bool:
        if not isinstance(canonical_name, str):
            return False
        return self.name_normalizer.normalize(canonical_name) in self._entries

    @staticmethod
    def _belongs(name: str, entry: AliasEntry) -> bool:
        return any(
            alias in name or name in alias
            for alias in entry.all_names
        )

    # === Updates ===

    def add_aliases(self, canonical_name: str, synonyms: Iterable[str]) -> AliasEntry:
        """
        Add synonyms to an entry, creating it if needed.

        Existing synonyms are never removed; adding the same synonyms twice
        leaves the table unchanged.

        Raises:
            AliasConfigurationError: empty canonical name or synonym
        """
        canonical, new_synonyms = self._validate_entry(canonical_name, synonyms)

        with self._lock:
            current = self._entries.get(canonical)
            merged = new_synonyms if current is None else current.synonyms | new_synonyms
            entry = AliasEntry(canonical_name=canonical, synonyms=merged)

            updated = dict(self._entries)
            updated[canonical] = entry
            self._entries = updated

        logger.info(f"Alias entry '{canonical}' now has {len(entry.synonyms)} synonym(s)")
        return entry

    def reload(self, aliases: Mapping[str, Iterable[str]]) -> None:
        """Replace the whole table. Meant to run between requests."""
        entries = self._build_entries(aliases)
        with self._lock:
            self._entries = entries
        logger.info(f"Alias table reloaded with {len(entries)} entries")

    def load_file(self, path: Union[str, Path]) -> int:
        """
        Merge aliases from a JSON file into the table.

        Returns:
            Number of entries read from the file

        Raises:
            AliasConfigurationError: missing file, invalid JSON or bad entry
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise AliasConfigurationError(f"Cannot load alias file {path}: {e}")

        if not isinstance(data, Mapping):
            raise AliasConfigurationError(
                f"Alias file {path} must contain an object of name -> synonyms"
            )

        # Validate everything before touching the live table
        validated = self._build_entries(data)
        for entry in validated.values():
            self.add_aliases(entry.canonical_name, entry.synonyms)

        logger.info(f"Loaded {len(validated)} alias entries from {path}")
        return len(validated)

    def _build_entries(self, aliases: Mapping[str, Iterable[str]]) -> Dict[str, AliasEntry]:
        entries: Dict[str, AliasEntry] = {}
        for canonical_name, synonyms in aliases.items():
            canonical, normalized = self._validate_entry(canonical_name, synonyms)
            if canonical in entries:
                normalized = entries[canonical].synonyms | normalized
            entries[canonical] = AliasEntry(canonical_name=canonical, synonyms=normalized)
        return entries

    def _validate_entry(self, canonical_name: object, synonyms: object) -> Tuple[str, FrozenSet[str]]:
        if not isinstance(canonical_name, str):
            raise AliasConfigurationError(
                f"Alias canonical name must be a string, got {type(canonical_name).__name__}"
            )
        canonical = self.name_normalizer.normalize(canonical_name)
        if not canonical:
            raise AliasConfigurationError(f"Alias canonical name is empty: {canonical_name!r}")

        if isinstance(synonyms, (str, bytes)) or not isinstance(synonyms, Iterable):
            raise AliasConfigurationError(
                f"Synonyms for '{canonical}' must be a list of strings"
            )

        normalized = set()
        for synonym in synonyms:
            if not isinstance(synonym, str):
                raise AliasConfigurationError(
                    f"Synonym for '{canonical}' must be a string, got {type(synonym).__name__}"
                )
            value = self.name_normalizer.normalize(synonym)
            if not value:
                raise AliasConfigurationError(
                    f"Synonym for '{canonical}' is empty after normalization: {synonym!r}"
                )
            normalized.add(value)

        return canonical, frozenset(normalized)

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            canonical: sorted(entry.synonyms)
            for canonical, entry in self._entries.items()
        }
