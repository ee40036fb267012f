"""Generate a product id and API key from a product name.

Usage::

    python -m subplatform.keygen "My Product"

Prints the product id, the plaintext key (shown once, store it in the
product's configuration) and the bcrypt hash to load into ``products``.
Nothing is written to the database; use ``POST /manage/products`` for that.
"""

from __future__ import annotations

import argparse
import sys

from subplatform.auth.hashing import hash_secret
from subplatform.auth.keys import generate_api_key
from subplatform.config import settings
from subplatform.services.product_service import derive_product_id


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m subplatform.keygen",
        description="Generate a product API key and its bcrypt hash.",
    )
    parser.add_argument("name", help="Product display name")
    parser.add_argument("--tag", default=settings.API_KEY_TAG, help="Middle key segment")
    parser.add_argument(
        "--rounds", type=int, default=settings.BCRYPT_ROUNDS, help="bcrypt cost factor"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if "_" in args.tag or not 4 <= args.rounds <= 31:
        print("error: tag must not contain '_' and rounds must be between 4 and 31", file=sys.stderr)
        return 2
    try:
        product_id = derive_product_id(args.name)
        api_key = generate_api_key(product_id, tag=args.tag)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    print(f"Product ID: {product_id}")
    print(f"API Key:    {api_key}")
    print(f"Hash:       {hash_secret(api_key, rounds=args.rounds)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
