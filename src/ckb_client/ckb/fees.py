"""
Capacity units and fee arithmetic.

Capacity is measured in shannons; one CKB is 10^8 shannons and every byte a
cell occupies costs one CKB. Fee rates are shannons per 1000 bytes.
"""

SHANNONS_PER_CKB = 10**8
DEFAULT_MIN_FEE_RATE = 1000

# Serialized size of a transaction excludes the u32 slot it occupies in a block.
TX_SIZE_OVERHEAD = 4


def fixed_point_from(ckb: int) -> int:
    """Convert whole CKB (or occupied bytes) into shannons."""
    return int(ckb) * SHANNONS_PER_CKB


def calculate_fee(size: int, fee_rate: int) -> int:
    """
    Fee for a transaction of ``size`` bytes at ``fee_rate`` shannons/KB.

    Rounded up so the paid fee never falls below the rate.
    """
    if size < 0 or fee_rate < 0:
        raise ValueError("size and fee_rate must be non-negative")
    return -(-size * fee_rate // 1000)
