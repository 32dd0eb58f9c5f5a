DEFAULT_DECIMALS = 0          # amounts are already in the smallest denomination
MAX_RECIPIENTS = 100_000      # enforced by the CLI, not by the engine
UINT256_MAX = 2**256 - 1

MERKLE_JSON = "merkle.json"
CLAIMS_CSV = "claims.csv"
SAMPLE_CSV = "sample.csv"

ADDRESS_KEYS = ("address", "Address", "ADDRESS")
AMOUNT_KEYS = ("amount", "Amount", "AMOUNT")
