"""
Recipient normalizer: raw (address, amount) rows -> deduplicated recipient list.

Rows can be mappings (csv.DictReader rows, JSON objects) or positional sequences
(csv.reader rows, tuples). Row-level problems never raise: the row is dropped (bad or
missing address) or kept with amount 0 (bad amount), and a RowError is recorded.
Duplicates collapse per lower-cased address, last row wins, first-seen order kept.
"""
import logging
from decimal import Decimal, Inexact, InvalidOperation, localcontext
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple

from eth_utils import is_checksum_address, is_hex_address, to_normalized_address

from .config import ADDRESS_KEYS, AMOUNT_KEYS, DEFAULT_DECIMALS, UINT256_MAX
from .errors import INVALID_ADDRESS, INVALID_AMOUNT, MISSING_ADDRESS

logger = logging.getLogger(__name__)


class Recipient(NamedTuple):
    address: str  # 0x + 40 lower-case hex
    amount: int   # smallest denomination


class RowError(NamedTuple):
    row_index: int
    kind: str
    detail: str


class Normalized(NamedTuple):
    recipients: List[Recipient]
    total_amount: int
    duplicates_removed: int
    errors: List[RowError]

    def to_dict(self) -> dict:
        return {
            "recipients": [{"address": r.address, "amount": str(r.amount)} for r in self.recipients],
            "totalRecipients": len(self.recipients),
            "totalAmount": str(self.total_amount),
            "duplicatesRemoved": self.duplicates_removed,
            "errors": [{"row": e.row_index, "kind": e.kind, "detail": e.detail} for e in self.errors],
        }


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def is_valid_address(value: Any) -> bool:
    """40 hex digits (0x optional), all-lower, all-upper, or mixed case with a valid EIP-55 checksum."""
    if not isinstance(value, str) or not is_hex_address(value):
        return False
    body = value[2:] if value[:2].lower() == "0x" else value
    if body == body.lower() or body == body.upper():
        return True
    return is_checksum_address("0x" + body)


def _columns(row: Any) -> List[Tuple[Any, str]]:
    """Non-empty (key, text) pairs of a row, in column order. None and scalars have no cells."""
    if isinstance(row, (str, bytes)):
        row = [row.decode() if isinstance(row, bytes) else row]
    if isinstance(row, Mapping):
        items = row.items()
    else:
        try:
            items = enumerate(row)
        except TypeError:
            return []
    cols = []
    for key, value in items:
        # csv.DictReader puts overflow cells in a list under the None key
        values = value if isinstance(value, (list, tuple)) else [value]
        for v in values:
            text = _text(v)
            if text:
                cols.append((key, text))
    return cols


def parse_amount(value: Any, decimals: int = DEFAULT_DECIMALS) -> int:
    """
    Parse a decimal amount and scale it by 10**decimals (decimals=18 behaves like parseEther).
    Raises ValueError unless the result is a positive integer that fits in uint256.
    """
    if isinstance(value, bool):
        raise ValueError(f"amount must be a number, got: {value!r}")
    text = _text(value)
    try:
        d = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"amount is not a decimal number: {text!r}") from None
    if not d.is_finite():
        raise ValueError(f"amount is not a finite number: {text!r}")
    with localcontext() as ctx:
        ctx.prec = 100
        ctx.traps[Inexact] = True
        try:
            scaled = d.scaleb(decimals)
        except ArithmeticError:
            raise ValueError(f"amount has too many digits: {text!r}") from None
    if scaled != scaled.to_integral_value():
        raise ValueError(f"amount has more than {decimals} decimal places: {text!r}")
    if scaled <= 0:
        raise ValueError(f"amount must be positive, got: {text!r}")
    if scaled > UINT256_MAX:
        raise ValueError(f"amount does not fit in uint256: {text!r}")
    return int(scaled)


def _lookup(row: Any, keys: Iterable[str]) -> Tuple[bool, Optional[Any], str]:
    """(declared, key, text) for the first named field with a value."""
    if not isinstance(row, Mapping):
        return False, None, ""
    declared = False
    for key in keys:
        if key in row:
            declared = True
            text = _text(row[key])
            if text:
                return True, key, text
    return declared, None, ""


def _normalize_row(row: Any, decimals: int) -> Tuple[Optional[Recipient], Optional[Tuple[str, str]]]:
    cols = _columns(row)
    keys = [k for k, _ in cols]

    _, key, address = _lookup(row, ADDRESS_KEYS)
    if key is not None:
        pos = keys.index(key)
    else:
        pos = next((i for i, (_, v) in enumerate(cols) if is_valid_address(v)), None)
        if pos is None:
            if not cols or isinstance(row, Mapping):
                return None, (MISSING_ADDRESS, "row has no address")
            # headerless row: the first column is the address column
            return None, (INVALID_ADDRESS, f"Invalid EVM address: {cols[0][1]}")
        address = cols[pos][1]

    if not is_valid_address(address):
        return None, (INVALID_ADDRESS, f"Invalid EVM address: {address}")

    amount_declared, _, amount_text = _lookup(row, AMOUNT_KEYS)
    if not amount_declared and pos + 1 < len(cols):
        amount_text = cols[pos + 1][1]

    recipient = Recipient(to_normalized_address(address), 0)
    if not amount_text:
        return recipient, None
    try:
        return recipient._replace(amount=parse_amount(amount_text, decimals)), None
    except ValueError as exc:
        # keep the address, drop the amount
        return recipient, (INVALID_AMOUNT, str(exc))


def normalize(entries: Iterable[Any], decimals: int = DEFAULT_DECIMALS) -> Normalized:
    """
    Validate and deduplicate raw rows.

    row_index in the returned errors is the 0-based position of the row in ``entries``.
    total_amount is summed over the deduplicated recipients.
    """
    kept: List[Recipient] = []
    errors: List[RowError] = []
    rows = 0
    for i, row in enumerate(entries):
        rows += 1
        recipient, problem = _normalize_row(row, decimals)
        if problem is not None:
            errors.append(RowError(i, *problem))
            logger.debug("row %d: %s (%s)", i, problem[0], problem[1])
        if recipient is not None:
            kept.append(recipient)

    unique: Dict[str, Recipient] = {}
    for r in kept:
        unique[r.address] = r
    recipients = list(unique.values())
    total = sum(r.amount for r in recipients)
    duplicates = len(kept) - len(recipients)

    logger.info(
        "normalized %d rows: %d recipients, %d duplicates removed, %d errors",
        rows, len(recipients), duplicates, len(errors),
    )
    return Normalized(recipients, total, duplicates, errors)
