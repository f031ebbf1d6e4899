#!/usr/bin/env python3
"""Check the degree and eligibility dictionaries for aliases claimed by two keys.

Usage:
    python scripts/check_alias_duplicates.py
    python scripts/check_alias_duplicates.py --degrees path/to/degrees.yaml

Exits 1 when any alias (after normalization) maps to more than one canonical key,
so it can gate dictionary edits in CI.
"""

import argparse
import os
import sys

from dotenv import load_dotenv

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
load_dotenv()

from jobsync_matching.taxonomy.loader import (  # noqa: E402
    DEFAULT_DEGREES_PATH,
    DEFAULT_ELIGIBILITIES_PATH,
    load_taxonomies,
)


def main() -> int:
    parser = argparse.ArgumentParser(description="Report duplicate aliases in the dictionaries")
    parser.add_argument(
        "--degrees",
        default=os.getenv("DEGREES_YAML_PATH", str(DEFAULT_DEGREES_PATH)),
        help="Degrees YAML file",
    )
    parser.add_argument(
        "--eligibilities",
        default=os.getenv("ELIGIBILITIES_YAML_PATH", str(DEFAULT_ELIGIBILITIES_PATH)),
        help="Eligibilities YAML file",
    )
    args = parser.parse_args()

    taxonomies = load_taxonomies(args.degrees, args.eligibilities)
    found = 0
    for taxonomy in (taxonomies.degrees, taxonomies.eligibilities):
        print(
            f"{taxonomy.domain.value}: {len(taxonomy)} entries, "
            f"{taxonomy.alias_count} aliases"
        )
        for alias, keys in sorted(taxonomy.collisions.items()):
            print(f"  DUPLICATE {alias!r} -> {', '.join(keys)}")
            found += 1

    if found:
        print(f"\n{found} duplicate aliases found")
        return 1
    print("\nNo duplicate aliases")
    return 0


if __name__ == "__main__":
    sys.exit(main())
