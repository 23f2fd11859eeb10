"""CLI demo for writing records to a workbook and reading them back."""

# Module responsibilities:
# - Provide a CLI that writes sample records through a mapping and reads them back.
# - Generate a placeholder mapping YAML when the requested path does not exist.

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import List

from sheetmap import Mapper, SchemaRegistry, load_schema
from sheetmap.errors import SheetMapError
from sheetmap.utils.log import get_logger
from sheetmap.utils.paths import ensure_default_structure, prepare_output_path

logger = get_logger("tools.demo_sheetmap")

EXAMPLE_MAPPING = (
    "sheet:\n"
    "  name: Payments\n"
    "  header_row: 0\n"
    "  content_row: 1\n"
    "columns:\n"
    "  - attr: payment_id\n"
    "    kind: long\n"
    "    index: 0\n"
    "    name: ID\n"
    "  - attr: payee\n"
    "    name: Payee\n"
    "    styles: [bold]\n"
    "  - attr: amount\n"
    "    name: Amount\n"
    "    format: '#,##0.00'\n"
    "  - attr: paid_on\n"
    "    name: Paid On\n"
    "    format: yyyy-MM-dd\n"
    "    width: 14\n"
)


@dataclass
class Payment:
    payment_id: int = 0
    payee: str = ""
    amount: float = 0.0
    paid_on: date | None = None


def sample_payments() -> List[Payment]:
    return [
        Payment(1, "服务费", 1200.0, date(2024, 1, 5)),
        Payment(2, "备件", 800.5, date(2024, 3, 9)),
        Payment(3, "咨询", 450.0, date(2024, 4, 1)),
    ]


def ensure_mapping(path: Path) -> None:
    if path.exists():
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(EXAMPLE_MAPPING, encoding="utf-8")
    logger.info("Generated example mapping", extra={"path": str(path)})


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Record <-> worksheet mapping demo")
    parser.add_argument("--mapping", type=Path, default=Path("examples/payments_mapping.yaml"))
    parser.add_argument("--out", type=Path, default=None)
    parser.add_argument("--workspace", type=Path, default=None, help="Override SheetMap base directory")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    ensure_default_structure(args.workspace)

    try:
        ensure_mapping(args.mapping)
        registry = SchemaRegistry()
        registry.register(load_schema(args.mapping, Payment))
        mapper = Mapper(registry)

        out_path = args.out or prepare_output_path("payments.xlsx", args.workspace)
        payments = sample_payments()
        mapper.write_all(out_path, payments)
        result = mapper.read_report(out_path, Payment)

        logger.info(
            "Round trip complete",
            extra={"output": str(out_path), "row_count": len(result.records)},
        )
        print(f"Rows written: {len(payments)}")
        print(f"Rows read back: {len(result.records)}")
        print(f"Skipped fields: {len(result.skipped)}")
        print(f"Output: {out_path}")
        return 0
    except (SheetMapError, OSError) as exc:
        logger.error("Mapping demo failed", extra={"error": str(exc)})
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
