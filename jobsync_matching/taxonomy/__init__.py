"""Degree and eligibility taxonomies: parsing, alias index, and text helpers."""

from jobsync_matching.taxonomy.loader import (
    DEFAULT_DEGREES_PATH,
    DEFAULT_ELIGIBILITIES_PATH,
    Taxonomies,
    Taxonomy,
    TaxonomyLoadError,
    find_alias_collisions,
    load_taxonomies,
    load_taxonomy_file,
    parse_taxonomy_document,
)
from jobsync_matching.taxonomy.text import normalize_key

__all__ = [
    "DEFAULT_DEGREES_PATH",
    "DEFAULT_ELIGIBILITIES_PATH",
    "Taxonomies",
    "Taxonomy",
    "TaxonomyLoadError",
    "find_alias_collisions",
    "load_taxonomies",
    "load_taxonomy_file",
    "normalize_key",
    "parse_taxonomy_document",
]
