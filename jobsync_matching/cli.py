import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def local_dev():
    os.chdir(PROJECT_ROOT)
    os.environ.setdefault("DAGSTER_HOME", str(PROJECT_ROOT))
    os.execvp(
        sys.executable,
        [sys.executable, "-m", "dagster", "dev", "-m", "jobsync_matching.definitions"]
        + sys.argv[1:],
    )


def check_aliases():
    """Run the alias duplicate check against the configured dictionaries."""
    script = PROJECT_ROOT / "scripts" / "check_alias_duplicates.py"
    os.execvp(sys.executable, [sys.executable, str(script)] + sys.argv[1:])
