"""Formatting, conversion and fixed-point utilities."""

from decimal import Decimal, InvalidOperation

from staking_economics.constants import MAX_BPS, PRECISION, SECONDS_PER_YEAR, SHARE_SCALE, UINT256_MAX, WEI_PER_ETH


def as_int(value, *, default: int = 0) -> int:
    """Convert value to int, handling various types."""
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        v = value.strip()
        if v.startswith("0x"):
            return int(v, 16)
        return int(v)
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"Expected an integer, got {value!r}")
    return int(value)


def as_bool(value) -> bool:
    """Accept only a real boolean (a JSON true/false)."""
    if not isinstance(value, bool):
        raise ValueError(f"Expected a boolean, got {value!r}")
    return value


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    Floor of a * b / denominator over uint256 operands.

    The product is exact (Python ints are unbounded), so only the inputs and the result
    are range-checked. Every ratio in the engine goes through here so rounding is uniformly down.
    """
    if denominator == 0:
        raise ZeroDivisionError("denominator must be > 0")
    for name, v in (("a", a), ("b", b), ("denominator", denominator)):
        if v < 0:
            raise ValueError(f"{name} must be non-negative: {v}")
        if v > UINT256_MAX:
            raise OverflowError(f"{name} exceeds uint256: {v}")
    result = (a * b) // denominator
    if result > UINT256_MAX:
        raise OverflowError(f"mul_div result exceeds uint256: {result}")
    return result


def to_address(value) -> str:
    """Normalize an account to its EIP-55 checksum form."""
    from web3 import Web3  # pylint: disable=import-outside-toplevel

    if isinstance(value, (bytes, bytearray)):
        value = f"0x{bytes(value).hex()}"
    s = str(value).strip()
    if not Web3.is_address(s):
        raise ValueError(f"Invalid address: {value!r}")
    return Web3.to_checksum_address(s)


def derive_address(label: str) -> str:
    """Deterministic address for a named component: last 20 bytes of keccak(label)."""
    from web3 import Web3  # pylint: disable=import-outside-toplevel

    digest = Web3.keccak(text=label)
    return Web3.to_checksum_address(f"0x{bytes(digest[-20:]).hex()}")


def parse_ether(value) -> int:
    """Parse an ether amount (number or decimal string) into wei."""
    from web3 import Web3  # pylint: disable=import-outside-toplevel

    if isinstance(value, bool):
        raise ValueError(f"Invalid ether amount: {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as ex:
        raise ValueError(f"Invalid ether amount: {value!r}") from ex
    if amount < 0:
        raise ValueError(f"Ether amount must be non-negative: {value!r}")
    return int(Web3.to_wei(amount, "ether"))


def format_bp(bp: int) -> str:
    """Format basis points as percentage."""
    return f"{(Decimal(bp) / Decimal(100)):.2f}%"


def format_eth(value_wei: int, *, decimals: int = 9, approx: bool = False) -> str:
    """Format wei value as ETH."""
    eth = Decimal(value_wei) / WEI_PER_ETH
    s = f"{eth:.{decimals}f}".rstrip("0").rstrip(".")
    prefix = "~" if approx else ""
    return f"{prefix}{s} ETH"


def format_shares(value: int, *, decimals: int = 3) -> str:
    """Format shares value."""
    shares = Decimal(value) / SHARE_SCALE
    s = f"{shares:.{decimals}f}".rstrip("0").rstrip(".")
    return f"{s} shares"


def format_ratio(value: int, *, decimals: int = 6) -> str:
    """Format a PRECISION-scaled ratio."""
    ratio = Decimal(value) / Decimal(PRECISION)
    return f"{ratio:.{decimals}f}"


def format_address(address: str) -> str:
    """Shorten an address for console output."""
    return f"{address[:10]}...{address[-6:]}"


def annualized_bps(gain: int, base: int, elapsed_s: int) -> int:
    """Annualize a gain over base during elapsed_s seconds, in basis points."""
    if base <= 0 or elapsed_s <= 0 or gain <= 0:
        return 0
    return mul_div(gain * MAX_BPS, SECONDS_PER_YEAR, base * elapsed_s)


def delta_indicator(prev_val: int, cur_val: int) -> str:
    """Returns emoji indicator for value change."""
    if cur_val > prev_val:
        return "📈"
    if cur_val < prev_val:
        return "📉"
    return "➡️"
