"""CSV/JSON adapters around the core: recipient CSV in, merkle.json and claims.csv out."""
import csv
import json
import logging
from typing import Any, Dict, List

from .recipients import is_valid_address
from .tree import Distribution

logger = logging.getLogger(__name__)

SAMPLE_ROWS = [
    ("0x1111111111111111111111111111111111111111", "1000"),
    ("0x2222222222222222222222222222222222222222", "2500"),
    ("0x3333333333333333333333333333333333333333", "5000"),
]


def _filled(cells) -> bool:
    return any(c.strip() for c in cells if isinstance(c, str))


def read_csv_entries(path: str) -> List[Any]:
    """
    Rows of a recipients CSV. A header row gives dict rows (address,amount or any
    casing of them), a headerless file gives positional rows. Blank lines are skipped.
    """
    with open(path, newline="") as f:
        reader = csv.reader(f)
        first = next((r for r in reader if _filled(r)), None)
        if first is None:
            return []
        # a first row holding an address is data, not a header
        has_header = not any(is_valid_address(c.strip()) for c in first)
        if has_header:
            rows = [r for r in csv.DictReader(f, fieldnames=first) if _filled(r.values())]
        else:
            rows = [first] + [r for r in reader if _filled(r)]
    logger.debug("read %d rows from %s (header: %s)", len(rows), path, has_header)
    return rows


def write_sample_csv(path: str):
    with open(path, "w", newline="") as f:
        w = csv.writer(f)
        w.writerow(["address", "amount"])
        w.writerows(SAMPLE_ROWS)


def save_json(obj, path: str):
    with open(path, "w") as f:
        json.dump(obj, f, indent=2)


def write_distribution_json(distribution: Distribution, path: str):
    save_json(distribution.to_dict(), path)


def load_distribution_json(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        master = json.load(f)
    if not isinstance(master, dict) or "merkleRoot" not in master or "claims" not in master:
        raise ValueError(f"{path} is not a merkle distribution file")
    return master


def write_claims_csv(distribution: Distribution, path: str):
    with open(path, "w", newline="") as f:
        w = csv.writer(f)
        w.writerow(["address", "amount", "index", "proof"])
        for address, c in distribution.to_dict()["claims"].items():
            w.writerow([address, c["amount"], c["index"], json.dumps(c["proof"])])
