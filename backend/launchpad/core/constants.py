"""Fixed numeric constants shared by the pricing engine and persistence."""

U64_MAX = 2**64 - 1
U128_MAX = 2**128 - 1

# Fee rates are expressed in basis points; 10_000 bp == 100%
BASIS_POINTS_DENOMINATOR = 10_000

# Asset units carry 6 decimals; 1 whole token == 1_000_000 units
TOKEN_DECIMALS = 6

# Anti-bot throttle: 5_000 ppm (0.5%) of supply per elapsed hour, capped at 5_000 ppm
SECONDS_PER_HOUR = 3_600
PARTS_PER_MILLION = 1_000_000
CREATOR_ALLOWANCE_PPM_PER_HOUR = 5_000
