from enum import Enum

DEFAULT_CURRENCY = "USD"

# 10000 basis points == 100%
BASIS_POINTS_SCALE = 10000
MAX_BASIS_POINTS = BASIS_POINTS_SCALE

# Minor units per major unit (cents per dollar)
MINOR_UNIT_SCALE = 100

# Monetary, quantity and invoice-number columns are signed 64-bit integers
MAX_BIGINT = 2**63 - 1
MAX_MINOR_UNITS = MAX_BIGINT

# Non-negative decimal text with at most two decimal places, e.g. "58.99"
PRICE_PATTERN = r"^\d+(?:\.\d{1,2})?$"

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "NGN": "₦",
}


class DiscountRounding(str, Enum):
    """How a discount that is not a whole number of minor units is resolved.

    FLOOR truncates the discount. PROPORTIONAL splits the subtotal in the
    ratio rate : (10000 - rate), flooring both parts and handing the leftover
    minor unit to the discount.
    """

    FLOOR = "floor"
    PROPORTIONAL = "proportional"
