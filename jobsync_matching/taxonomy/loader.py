"""Load degree and eligibility taxonomies from YAML into immutable indexes.

Source documents come in several shapes and are flattened into CanonicalEntry
records at load time, so nothing downstream branches on the source layout:

    degrees:                      # optional root key ("degrees" / "eligibilities")
      - key: BS_IT                # list form; "id" is accepted for "key"
        canonical: Bachelor of Science in Information Technology
        level: bachelor
        field_group: ict          # "fieldGroup" is accepted too
        aliases: [BSIT, BS IT]

    BS_IT:                        # map form; the map key is used when "key" is absent
      canonical: ...

Entries without a key or canonical label are skipped. Anything that is not a
list or mapping, or that yields no usable entries, raises TaxonomyLoadError.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from jobsync_matching.models.enums import TaxonomyDomainEnum
from jobsync_matching.models.matching import CanonicalEntry
from jobsync_matching.taxonomy.text import normalize_key

logger = logging.getLogger(__name__)

DICTIONARY_DIR = Path(__file__).parent / "dictionaries"
DEFAULT_DEGREES_PATH = DICTIONARY_DIR / "degrees.yaml"
DEFAULT_ELIGIBILITIES_PATH = DICTIONARY_DIR / "eligibilities.yaml"

_ROOT_KEYS = {
    TaxonomyDomainEnum.DEGREE: "degrees",
    TaxonomyDomainEnum.ELIGIBILITY: "eligibilities",
}


class TaxonomyLoadError(ValueError):
    """A taxonomy source could not be read or produced no entries."""


def _coerce_aliases(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(alias) for alias in value if alias is not None and str(alias).strip())


def _entry_from_mapping(item: dict[str, Any], fallback_key: str | None = None) -> CanonicalEntry | None:
    key = item.get("key") or item.get("id") or fallback_key
    canonical = item.get("canonical")
    if not key or not canonical:
        return None
    field_group = item.get("field_group") or item.get("fieldGroup")
    return CanonicalEntry(
        key=str(key),
        canonical_label=str(canonical),
        level=str(item["level"]) if item.get("level") else None,
        category=str(item["category"]) if item.get("category") else None,
        field_group=str(field_group) if field_group else None,
        aliases=_coerce_aliases(item.get("aliases")),
    )


def parse_taxonomy_document(doc: Any, domain: TaxonomyDomainEnum) -> list[CanonicalEntry]:
    """Flatten a parsed YAML document into canonical entries.

    Args:
        doc: Result of ``yaml.safe_load`` on a taxonomy file
        domain: Taxonomy the document belongs to (selects the optional root key)

    Returns:
        Entries in document order

    Raises:
        TaxonomyLoadError: If the document is neither a list nor a mapping
    """
    if doc is None:
        return []

    source = doc
    if isinstance(doc, dict) and _ROOT_KEYS[domain] in doc:
        source = doc[_ROOT_KEYS[domain]]

    entries: list[CanonicalEntry] = []
    if isinstance(source, list):
        for item in source:
            if not isinstance(item, dict):
                continue
            entry = _entry_from_mapping(item)
            if entry is not None:
                entries.append(entry)
        return entries

    if isinstance(source, dict):
        for raw_key, value in source.items():
            if not isinstance(value, dict):
                continue
            entry = _entry_from_mapping(value, fallback_key=str(raw_key))
            if entry is not None:
                entries.append(entry)
        return entries

    raise TaxonomyLoadError(
        f"{domain.value} taxonomy must be a list or mapping of entries, got {type(source).__name__}"
    )


def _alias_sources(entry: CanonicalEntry) -> list[str]:
    return [entry.canonical_label, entry.key, *entry.aliases]


def find_alias_collisions(entries: Iterable[CanonicalEntry]) -> dict[str, list[str]]:
    """Return every normalized alias claimed by more than one canonical key."""
    owners: dict[str, set[str]] = {}
    for entry in entries:
        for alias in _alias_sources(entry):
            normalized = normalize_key(alias)
            if normalized:
                owners.setdefault(normalized, set()).add(entry.key)
    return {
        alias: sorted(keys) for alias, keys in sorted(owners.items()) if len(keys) > 1
    }


class Taxonomy:
    """Read-only dictionary for one domain.

    The alias index maps normalized alias -> canonical key and is built once. When
    two entries claim the same alias the first one in document order keeps it; the
    conflict is still reported through ``collisions``.
    """

    def __init__(self, domain: TaxonomyDomainEnum, entries: Iterable[CanonicalEntry]):
        self.domain = domain
        self.entries: tuple[CanonicalEntry, ...] = tuple(entries)

        by_key: dict[str, CanonicalEntry] = {}
        alias_index: dict[str, str] = {}
        for entry in self.entries:
            if entry.key in by_key:
                logger.warning(f"Duplicate {domain.value} key {entry.key!r}; keeping first entry")
                continue
            by_key[entry.key] = entry
            for alias in _alias_sources(entry):
                normalized = normalize_key(alias)
                if normalized and normalized not in alias_index:
                    alias_index[normalized] = entry.key

        self._by_key = MappingProxyType(by_key)
        self._alias_index = MappingProxyType(alias_index)
        self.collisions = MappingProxyType(find_alias_collisions(self.entries))

    def __len__(self) -> int:
        return len(self._by_key)

    def __iter__(self) -> Iterator[CanonicalEntry]:
        return iter(self._by_key.values())

    def get(self, key: str) -> CanonicalEntry | None:
        return self._by_key.get(key)

    def lookup(self, raw: str) -> CanonicalEntry | None:
        """Exact lookup of a raw value against labels, keys, and aliases."""
        key = self._alias_index.get(normalize_key(raw))
        return self._by_key[key] if key else None

    @property
    def alias_count(self) -> int:
        return len(self._alias_index)


@dataclass(frozen=True)
class Taxonomies:
    """Both dictionaries, handed to the engines as one dependency."""

    degrees: Taxonomy
    eligibilities: Taxonomy

    def for_domain(self, domain: TaxonomyDomainEnum) -> Taxonomy:
        if domain == TaxonomyDomainEnum.DEGREE:
            return self.degrees
        return self.eligibilities


def load_taxonomy_file(path: str | Path, domain: TaxonomyDomainEnum) -> Taxonomy:
    """Parse one YAML file into a Taxonomy, failing loudly on any problem."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise TaxonomyLoadError(f"Cannot read {domain.value} taxonomy at {path}: {e}") from e

    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise TaxonomyLoadError(f"Malformed YAML in {path}: {e}") from e

    entries = parse_taxonomy_document(doc, domain)
    if not entries:
        raise TaxonomyLoadError(f"{path} contains no usable {domain.value} entries")

    taxonomy = Taxonomy(domain, entries)
    logger.info(
        f"Loaded {len(taxonomy)} {domain.value} entries ({taxonomy.alias_count} aliases) from {path}"
    )
    for alias, keys in taxonomy.collisions.items():
        logger.warning(f"{domain.value} alias {alias!r} is claimed by {', '.join(keys)}")
    return taxonomy


def load_taxonomies(
    degrees_path: str | Path | None = None,
    eligibilities_path: str | Path | None = None,
) -> Taxonomies:
    """Load both dictionaries, defaulting to the ones shipped with the package."""
    return Taxonomies(
        degrees=load_taxonomy_file(degrees_path or DEFAULT_DEGREES_PATH, TaxonomyDomainEnum.DEGREE),
        eligibilities=load_taxonomy_file(
            eligibilities_path or DEFAULT_ELIGIBILITIES_PATH, TaxonomyDomainEnum.ELIGIBILITY
        ),
    )
