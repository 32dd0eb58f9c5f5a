"""Merkle airdrop distributions: normalize recipients, build the tree, derive and check proofs."""
from .errors import DistributionError, EmptyDistribution, InvalidRecipient
from .recipients import Normalized, Recipient, RowError, normalize
from .tree import Claim, Distribution, build_distribution, leaf_hash, verify, verify_claim

__version__ = "0.2.0"

__all__ = [
    "Claim",
    "Distribution",
    "DistributionError",
    "EmptyDistribution",
    "InvalidRecipient",
    "Normalized",
    "Recipient",
    "RowError",
    "build_distribution",
    "leaf_hash",
    "normalize",
    "verify",
    "verify_claim",
]
