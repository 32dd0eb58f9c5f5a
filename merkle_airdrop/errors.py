"""Errors raised by the distribution engine and row-level error kinds reported by the normalizer."""

# row-level kinds, collected by normalize() and never raised
MISSING_ADDRESS = "MissingAddress"
INVALID_ADDRESS = "InvalidAddress"
INVALID_AMOUNT = "InvalidAmount"


class DistributionError(ValueError):
    kind = "DistributionError"


class EmptyDistribution(DistributionError):
    kind = "EmptyDistribution"

    def __init__(self, message: str = "No recipients to build a distribution from"):
        super().__init__(message)


class InvalidRecipient(DistributionError):
    kind = "InvalidRecipient"

    def __init__(self, index: int, detail: str):
        self.index = index
        self.detail = detail
        super().__init__(f"Invalid recipient at index {index}: {detail}")
