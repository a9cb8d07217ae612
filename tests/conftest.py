from dataclasses import dataclass

import pytest

from staking_economics.context import ChainContext, ManualClock
from staking_economics.formatters import to_address
from staking_economics.oracle import RewardOracle
from staking_economics.pool import StakingPool
from staking_economics.wrapper import WrapperToken

GENESIS = 1_700_000_000
ETH = 10**18


@dataclass
class Deployment:
    clock: ManualClock
    ctx: ChainContext
    oracle: RewardOracle
    pool: StakingPool
    wrapper: WrapperToken
    owner: str
    treasury: str
    alice: str
    bob: str

    def submit(self, account: str, value: int) -> int:
        """Fund `account` with `value` ETH and deposit it."""
        self.ctx.ether.mint(account, value)
        return self.pool.submit(account, value)

    def wrap(self, account: str, amount: int) -> int:
        self.pool.token.approve(account, self.wrapper.address, amount)
        return self.wrapper.wrap(account, amount)

    def report(self, new_total_pooled_value: int, new_total_shares: int | None = None) -> int:
        shares = self.pool.total_shares if new_total_shares is None else new_total_shares
        return self.pool.handle_oracle_report(self.oracle.address, new_total_pooled_value, shares, 86400)


@pytest.fixture
def d() -> Deployment:
    clock = ManualClock(GENESIS)
    ctx = ChainContext(clock)
    owner = to_address("0x" + "0f" * 20)
    treasury = to_address("0x" + "7e" * 20)
    oracle = RewardOracle(ctx, owner)
    pool = StakingPool(ctx, owner, oracle=oracle.address, fee_recipient=treasury)
    wrapper = WrapperToken(ctx, pool, owner)
    return Deployment(
        clock=clock,
        ctx=ctx,
        oracle=oracle,
        pool=pool,
        wrapper=wrapper,
        owner=owner,
        treasury=treasury,
        alice=to_address("0x" + "a1" * 20),
        bob=to_address("0x" + "b0" * 20),
    )
