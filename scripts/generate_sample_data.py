"""Write a sample import file with generated policies."""

from __future__ import annotations

import argparse
import random
from pathlib import Path

from prakan_app.repositories.blob_gateway import MemoryBlobGateway
from prakan_app.services.file_codec import FileFormat
from prakan_app.services.policy_service import PolicyService
from prakan_app.services.record_store import RecordStore
from prakan_app.services.transfer_service import TransferService


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a sample policy file for import testing.")
    parser.add_argument("target", help="Output file (.xlsx, .csv or .json) or a directory.")
    parser.add_argument("--rounds", type=int, default=1, help="How many times to add the sample set.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible premiums.")
    parser.add_argument(
        "--format",
        choices=[fmt.value for fmt in FileFormat],
        default=None,
        help="Format when target is a directory (default xlsx).",
    )
    args = parser.parse_args()

    store = RecordStore(MemoryBlobGateway())
    policies = PolicyService(store)
    rng = random.Random(args.seed)
    for _ in range(max(1, args.rounds)):
        policies.generate_sample_policies(rng)

    fmt = FileFormat(args.format) if args.format else None
    written = TransferService(store).export_file(Path(args.target), fmt)
    print(f"[INFO] {len(store)} sample records written: {written}")


if __name__ == "__main__":
    main()
