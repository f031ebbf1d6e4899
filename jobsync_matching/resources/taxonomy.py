"""Taxonomy resource: loads the degree and eligibility dictionaries once."""

import os

from dagster import ConfigurableResource, get_dagster_logger
from pydantic import Field, PrivateAttr

from jobsync_matching.taxonomy.loader import (
    DEFAULT_DEGREES_PATH,
    DEFAULT_ELIGIBILITIES_PATH,
    Taxonomies,
    load_taxonomies,
)


class TaxonomyResource(ConfigurableResource):
    """Holds the immutable Taxonomies bundle for the lifetime of the resource.

    A malformed dictionary raises TaxonomyLoadError on first access, which fails
    the op that needed it instead of silently degrading every normalization.
    """

    degrees_path: str = Field(
        default_factory=lambda: os.getenv("DEGREES_YAML_PATH", str(DEFAULT_DEGREES_PATH)),
        description="Path to the degrees YAML dictionary",
    )
    eligibilities_path: str = Field(
        default_factory=lambda: os.getenv(
            "ELIGIBILITIES_YAML_PATH", str(DEFAULT_ELIGIBILITIES_PATH)
        ),
        description="Path to the eligibilities YAML dictionary",
    )
    _taxonomies: Taxonomies | None = PrivateAttr(default=None)

    def get_taxonomies(self) -> Taxonomies:
        if self._taxonomies is None:
            self._taxonomies = load_taxonomies(self.degrees_path, self.eligibilities_path)
            get_dagster_logger().info(
                f"Taxonomies loaded: {len(self._taxonomies.degrees)} degrees, "
                f"{len(self._taxonomies.eligibilities)} eligibilities"
            )
        return self._taxonomies
