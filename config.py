#!/usr/bin/env python
"""Initialize the service configuration from the sample.

Usage:
    python config.py          # Copy config.sample.yaml to config.yaml (won't overwrite)
    python config.py --force  # Overwrite an existing config.yaml
"""

import argparse
import shutil
from pathlib import Path

SAMPLE = "config.sample.yaml"
TARGET = "config.yaml"


def main():
    parser = argparse.ArgumentParser(description="Initialize config.yaml from the sample")
    parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Overwrite an existing config.yaml"
    )
    args = parser.parse_args()

    script_dir = Path(__file__).parent.resolve()
    sample_path = script_dir / SAMPLE
    target_path = script_dir / TARGET

    if not sample_path.exists():
        print(f"  skip: {SAMPLE} (sample not found)")
        return

    if target_path.exists() and not args.force:
        print(f"  skip: {TARGET} (already exists, use --force to overwrite)")
        return

    action = "overwrite" if target_path.exists() else "create"
    shutil.copy(sample_path, target_path)
    print(f"  {action}: {TARGET} <- {SAMPLE}")


if __name__ == "__main__":
    print("Initializing config...")
    main()
    print("Done.")
