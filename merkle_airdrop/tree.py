"""
Merkle distribution engine for airdrop distributors.

leaf   = keccak256(abi.encodePacked(address account, uint256 amount))
parent = keccak256(min(a, b) || max(a, b))   (sorted pair, bytewise order)

Sorting each pair means a proof is just the list of sibling hashes, which is what
OpenZeppelin's MerkleProof.verify expects. A trailing odd node is paired with itself,
and its proof carries the node itself at that level.
"""
import logging
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Sequence, Tuple, Union

from eth_utils import decode_hex, encode_hex, keccak, to_canonical_address, to_normalized_address

from .config import UINT256_MAX
from .errors import EmptyDistribution, InvalidRecipient
from .recipients import is_valid_address

logger = logging.getLogger(__name__)

HashLike = Union[bytes, str]


def leaf_hash(address: str, amount: int) -> bytes:
    # 20-byte address + 32-byte big-endian amount, no padding between them
    return keccak(to_canonical_address(address) + amount.to_bytes(32, byteorder="big"))


def hash_pair(a: bytes, b: bytes) -> bytes:
    if b < a:
        a, b = b, a
    return keccak(a + b)


def build_levels(leaves: Sequence[bytes]) -> List[List[bytes]]:
    if not leaves:
        raise EmptyDistribution("No leaves to build tree")
    levels = [list(leaves)]
    cur = levels[0]
    while len(cur) > 1:
        nxt = []
        for i in range(0, len(cur), 2):
            right = cur[i + 1] if i + 1 < len(cur) else cur[i]
            nxt.append(hash_pair(cur[i], right))
        levels.append(nxt)
        cur = nxt
    return levels


def proof_for(levels: List[List[bytes]], index: int) -> List[bytes]:
    """Sibling hashes from the leaf level up to (not including) the root."""
    if not 0 <= index < len(levels[0]):
        raise IndexError(f"leaf index {index} out of range")
    proof = []
    pos = index
    for level in levels[:-1]:
        sib = pos ^ 1
        if sib >= len(level):
            sib = pos  # odd tail, paired with itself
        proof.append(level[sib])
        pos //= 2
    return proof


def _to_hash(value: HashLike) -> bytes:
    if isinstance(value, str):
        value = decode_hex(value)
    if not isinstance(value, (bytes, bytearray)) or len(value) != 32:
        raise ValueError(f"expected a 32-byte hash, got: {value!r}")
    return bytes(value)


def verify(leaf: HashLike, proof: Iterable[HashLike], root: HashLike) -> bool:
    """Fold the proof into the leaf with the sorted-pair rule and compare with root. Never raises."""
    try:
        h = _to_hash(leaf)
        for sib in proof:
            h = hash_pair(h, _to_hash(sib))
        return h == _to_hash(root)
    except (TypeError, ValueError):
        return False


def verify_claim(address: str, amount: int, proof: Iterable[HashLike], root: HashLike) -> bool:
    if not is_valid_address(address):
        return False
    if isinstance(amount, bool) or not isinstance(amount, int) or not 0 <= amount <= UINT256_MAX:
        return False
    return verify(leaf_hash(address, amount), proof, root)


class Claim(NamedTuple):
    index: int
    address: str
    amount: int
    leaf: bytes
    proof: List[bytes]

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "amount": str(self.amount),
            "leaf": encode_hex(self.leaf),
            "proof": [encode_hex(p) for p in self.proof],
        }


class Distribution(NamedTuple):
    root: bytes
    leaves: List[bytes]
    recipients: List[Claim]
    levels: List[List[bytes]]

    @property
    def token_total(self) -> int:
        return sum(c.amount for c in self.recipients)

    def to_dict(self) -> dict:
        """merkle.json layout: claims keyed by address, hashes as 0x hex, amounts as decimal strings."""
        claims: Dict[str, dict] = {c.address: c.to_dict() for c in self.recipients}
        return {
            "merkleRoot": encode_hex(self.root),
            "tokenTotal": str(self.token_total),
            "leaves": [encode_hex(l) for l in self.leaves],
            "claims": claims,
        }


def _fields(recipient: Any) -> Tuple[Any, Any]:
    if isinstance(recipient, Mapping):
        return recipient.get("address"), recipient.get("amount")
    return getattr(recipient, "address", None), getattr(recipient, "amount", None)


def _canonical(recipients: Sequence[Any]) -> List[Tuple[str, int]]:
    out = []
    seen = set()
    for i, r in enumerate(recipients):
        address, amount = _fields(r)
        if not is_valid_address(address):
            raise InvalidRecipient(i, f"invalid address: {address!r}")
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidRecipient(i, f"amount must be an integer, got: {amount!r}")
        if not 0 <= amount <= UINT256_MAX:
            raise InvalidRecipient(i, f"amount out of uint256 range: {amount}")
        address = to_normalized_address(address)
        if address in seen:
            raise InvalidRecipient(i, f"duplicate address: {address}")
        seen.add(address)
        out.append((address, amount))
    return out


def build_distribution(recipients: Sequence[Any]) -> Distribution:
    """
    Hash recipients into leaves (in the given order), build the tree and derive one proof per leaf.

    Recipients may be Recipient tuples, objects with address/amount attributes, or mappings.
    Raises EmptyDistribution or InvalidRecipient; nothing partial is returned.
    """
    recipients = list(recipients)
    if not recipients:
        raise EmptyDistribution()
    canonical = _canonical(recipients)

    leaves = [leaf_hash(a, v) for a, v in canonical]
    levels = build_levels(leaves)
    claims = [
        Claim(i, address, amount, leaves[i], proof_for(levels, i))
        for i, (address, amount) in enumerate(canonical)
    ]
    root = levels[-1][0]
    logger.info("built tree: %d leaves, %d levels, root %s", len(leaves), len(levels), encode_hex(root))
    return Distribution(root, leaves, claims, levels)
