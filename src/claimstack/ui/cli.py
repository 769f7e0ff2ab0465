from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from claimstack.app import build_matrix, lookup_effective_claims
from claimstack.config import configure_logging
from claimstack.domain.resolution import validate_inputs

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from claimstack.domain.matrix import ClaimsMatrix
    from claimstack.domain.model import EffectiveClaim

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Resolve effective product claims")
    subparsers = parser.add_subparsers(dest="command", required=True)

    effective = subparsers.add_parser(
        "effective",
        help="Print the effective claims of one product in one market",
    )
    effective.add_argument("product_id", type=str, help="Product id")
    effective.add_argument("country_code", type=str, help="Target market country code")
    effective.add_argument(
        "--single-query",
        action="store_true",
        help="Let the store select the winning claims in one round-trip",
    )

    matrix = subparsers.add_parser(
        "matrix",
        help="Print the claims matrix of every branded product in one market",
    )
    matrix.add_argument("country_code", type=str, help="Target market country code")
    matrix.add_argument(
        "--brand-id",
        type=str,
        help="Only include products of this master brand",
    )

    return parser.parse_args(list(argv))


def _validate(args: argparse.Namespace) -> None:
    if args.command == "effective":
        validate_inputs(args.product_id, args.country_code)
    elif not args.country_code.strip():
        raise ValueError("country_code must not be blank")


def _effective_payload(claims: Sequence[EffectiveClaim]) -> list[dict[str, object]]:
    return [asdict(claim) for claim in claims]


def _matrix_payload(matrix: ClaimsMatrix) -> dict[str, object]:
    return {
        "country_code": matrix.country_code,
        "products": [{"id": product.id, "name": product.name} for product in matrix.products],
        "claim_texts": matrix.claim_texts,
        "cells": {
            text: {
                product.id: asdict(cell)
                if (cell := matrix.cell(text, product.id)) is not None
                else None
                for product in matrix.products
            }
            for text in matrix.claim_texts
        },
    }


def _emit(payload: object) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))  # noqa: T201


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "effective":
            claims = lookup_effective_claims(
                parsed_args.product_id.strip(),
                parsed_args.country_code.strip(),
                single_query=parsed_args.single_query,
            )
            _emit(_effective_payload(claims))
        elif parsed_args.command == "matrix":
            matrix = build_matrix(
                parsed_args.country_code.strip(),
                master_brand_id=parsed_args.brand_id,
            )
            _emit(_matrix_payload(matrix))
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except Exception:
        log.exception("Fatal error during claim resolution")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
