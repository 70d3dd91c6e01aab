"""
Export ABIs for the deployable Vyper contracts (mock contracts excluded).

Usage:
    python -m scripts.export_abis
    python -m scripts.export_abis --output-dir ./my-abis
"""

import argparse
import json
from pathlib import Path

from vyper.compiler import compile_code

from scripts.utils import log


def export_abis(contracts_dir: Path, output_dir: Path, exclude_dirs: list[str] = None):
    """
    Compiles every `.vy` under `contracts_dir` and writes `<name>.json` ABIs to
    `output_dir`. Returns the names that were exported.
    """
    exclude_dirs = exclude_dirs or ["mock"]
    output_dir.mkdir(parents=True, exist_ok=True)

    exported = []
    skipped = 0

    for vy_file in sorted(contracts_dir.rglob("*.vy")):
        if any(excluded in vy_file.parts for excluded in exclude_dirs):
            skipped += 1
            continue

        try:
            result = compile_code(vy_file.read_text(), output_formats=["abi"])
        except Exception as e:
            log.error(f"✗ {vy_file.stem}: {e}")
            continue

        output_file = output_dir / f"{vy_file.stem}.json"
        with open(output_file, "w") as f:
            json.dump(result["abi"], f, indent=2)

        log.h3(f"✓ {vy_file.stem}")
        exported.append(vy_file.stem)

    log.info(f"\nExported {len(exported)} ABIs to {output_dir}")
    log.info(f"Skipped {skipped} excluded contracts")
    return exported


def main():
    parser = argparse.ArgumentParser(description="Export ABIs for Vyper contracts")
    parser.add_argument(
        "--output-dir",
        "-o",
        type=Path,
        default=Path("abis"),
        help="Output directory for ABI files (default: abis)",
    )
    parser.add_argument(
        "--contracts-dir",
        "-c",
        type=Path,
        default=Path("contracts"),
        help="Contracts directory (default: contracts)",
    )
    args = parser.parse_args()

    export_abis(args.contracts_dir, args.output_dir)


if __name__ == "__main__":
    main()
