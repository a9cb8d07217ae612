"""Constants and configuration for the staking economics engine."""

from decimal import Decimal

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Basis points
MAX_BPS = 100_00
FEE_BPS = 10_00  # 10% protocol fee on deposits, minted as extra pool tokens
REWARD_APR_BPS = 5_00  # passive accrual between oracle reports

# Fixed-point
PRECISION = 10**18
MIN_UNIT = 1
UINT256_MAX = 2**256 - 1

SECONDS_PER_DAY = 24 * 60 * 60
SECONDS_PER_YEAR = 365 * SECONDS_PER_DAY

# Oracle balance setters: at most one update per interval, capped relative change per update.
MAX_BALANCE_CHANGE_BPS = 10_00
MIN_UPDATE_INTERVAL = 3600

WEI_PER_ETH = Decimal(10**18)
SHARE_SCALE = Decimal(10**18)

# Default token metadata
POOL_TOKEN_NAME = "Liquid staked Ether"
POOL_TOKEN_SYMBOL = "stETH"
WRAPPER_TOKEN_NAME = "Wrapped liquid staked Ether"
WRAPPER_TOKEN_SYMBOL = "wstETH"
NATIVE_SYMBOL = "ETH"

# Labels for deterministic component addresses (see formatters.derive_address)
POOL_ADDRESS_LABEL = "staking_economics:pool"
WRAPPER_ADDRESS_LABEL = "staking_economics:wrapper"
ORACLE_ADDRESS_LABEL = "staking_economics:oracle"

# Simulation defaults
DEFAULT_SIM_DAYS = 30
DEFAULT_DEPOSITORS = 3
DEFAULT_DEPOSIT_ETH = "32"
DEFAULT_VALIDATOR_COUNT = 10
DEFAULT_VALIDATOR_BALANCE_ETH = "32"
DEFAULT_WRAP_BPS = 50_00
DEFAULT_GENESIS_TIMESTAMP = 1_700_000_000

SCENARIO_ENV_VAR = "STAKING_ECONOMICS_SCENARIO"
