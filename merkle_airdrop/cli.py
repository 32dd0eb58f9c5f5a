"""merkle-airdrop: build merkleRoot, proofs and claims for an airdrop distributor contract."""
import argparse
import json
import logging
import sys

from eth_utils import to_normalized_address

from . import config
from .errors import DistributionError
from .files import (
    load_distribution_json,
    read_csv_entries,
    write_claims_csv,
    write_distribution_json,
    write_sample_csv,
)
from .recipients import is_valid_address, normalize, parse_amount
from .tree import build_distribution, verify_claim

logger = logging.getLogger(__name__)


def cmd_sample(args):
    write_sample_csv(args.out)
    print(f"Sample CSV written to {args.out}")
    return 0


def cmd_normalize(args):
    result = normalize(read_csv_entries(args.csv), decimals=args.decimals)
    print(json.dumps(result.to_dict(), indent=2))
    return 0


def cmd_build(args):
    result = normalize(read_csv_entries(args.csv), decimals=args.decimals)
    for e in result.errors:
        logger.warning("row %d: %s: %s", e.row_index, e.kind, e.detail)
    if result.errors and args.strict:
        logger.error("%d bad rows, refusing to build (--strict)", len(result.errors))
        return 1
    if len(result.recipients) > args.max_recipients:
        logger.error("%d recipients exceeds the limit of %d", len(result.recipients), args.max_recipients)
        return 1

    distribution = build_distribution(result.recipients)
    write_distribution_json(distribution, args.out_json)
    write_claims_csv(distribution, args.out_csv)
    print("Merkle root:", distribution.to_dict()["merkleRoot"])
    print("Token total:", distribution.token_total)
    print("Recipients:", len(distribution.recipients))
    if result.duplicates_removed:
        print("Duplicates removed:", result.duplicates_removed)
    print(f"Wrote {args.out_json} and {args.out_csv}")
    return 0


def _claim_address(text: str) -> str:
    text = text.strip()
    if not is_valid_address(text):
        raise ValueError(f"Invalid EVM address: {text}")
    return to_normalized_address(text)


def cmd_proof(args):
    master = load_distribution_json(args.json)
    addr = _claim_address(args.address)
    c = master["claims"].get(addr)
    if not c:
        print("Address not found in claims")
        return 1
    print(json.dumps({"address": addr, "amount": c["amount"], "index": c["index"], "proof": c["proof"]}, indent=2))
    return 0


def cmd_verify(args):
    master = load_distribution_json(args.json)
    addr = _claim_address(args.address)
    # address-only recipients are committed with amount 0
    amount = 0 if args.amount.strip() == "0" else parse_amount(args.amount, decimals=args.decimals)
    claim = master["claims"].get(addr)
    if not claim:
        print("Address not in claims")
        return 1
    if int(claim["amount"]) != amount:
        print("Amount mismatch. Expected:", claim["amount"])
        return 1
    ok = verify_claim(addr, amount, claim["proof"], master["merkleRoot"])
    print("Valid proof:", ok)
    return 0 if ok else 1


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="merkle-airdrop", description="Merkle airdrop distribution builder (sorted pairs)")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p = sub.add_parser("sample", help="write sample CSV")
    p.add_argument("--out", default=config.SAMPLE_CSV)
    p.set_defaults(func=cmd_sample)

    p = sub.add_parser("normalize", help="validate and deduplicate a recipients CSV, print the report")
    p.add_argument("--csv", required=True)
    p.add_argument("--decimals", type=int, default=config.DEFAULT_DECIMALS)
    p.set_defaults(func=cmd_normalize)

    p = sub.add_parser("build", help="build merkle.json & claims.csv from CSV")
    p.add_argument("--csv", required=True)
    p.add_argument("--decimals", type=int, default=config.DEFAULT_DECIMALS,
                   help="scale amounts by 10**decimals (18 for whole tokens -> wei)")
    p.add_argument("--out-json", default=config.MERKLE_JSON)
    p.add_argument("--out-csv", default=config.CLAIMS_CSV)
    p.add_argument("--max-recipients", type=int, default=config.MAX_RECIPIENTS)
    p.add_argument("--strict", action="store_true", help="fail on any bad row")
    p.set_defaults(func=cmd_build)

    p = sub.add_parser("proof", help="print proof JSON for an address")
    p.add_argument("--json", default=config.MERKLE_JSON)
    p.add_argument("--address", required=True)
    p.set_defaults(func=cmd_proof)

    p = sub.add_parser("verify", help="verify a claim against merkle.json")
    p.add_argument("--json", default=config.MERKLE_JSON)
    p.add_argument("--address", required=True)
    p.add_argument("--amount", required=True)
    p.add_argument("--decimals", type=int, default=config.DEFAULT_DECIMALS)
    p.set_defaults(func=cmd_verify)
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        return args.func(args)
    except DistributionError as exc:
        logger.error("%s: %s", exc.kind, exc)
    except (OSError, ValueError) as exc:
        logger.error("%s", exc)
    return 1


if __name__ == "__main__":
    sys.exit(main())
