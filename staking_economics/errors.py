"""Typed rejections raised by the staking engine.

Every rejection is terminal for the operation that raised it: the surrounding
transaction restores all state before the exception reaches the caller.
"""


class StakingError(Exception):
    """Base class for all engine rejections."""

    kind = "StakingError"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind)
        self.message = message or self.kind


# Input validation
class ValidationError(StakingError):
    kind = "Validation"


class ZeroAmount(ValidationError):
    kind = "ZeroAmount"


class InsufficientBalance(ValidationError):
    kind = "InsufficientBalance"


class InsufficientAllowance(ValidationError):
    kind = "InsufficientAllowance"


class ExceedsReserve(ValidationError):
    kind = "ExceedsReserve"


class InvalidParameter(ValidationError):
    kind = "InvalidParameter"


# State consistency
class StateError(StakingError):
    kind = "State"


class InsufficientState(StateError):
    kind = "InsufficientState"


class InsufficientLiquidity(StateError):
    kind = "InsufficientLiquidity"


class ZeroReturn(StateError):
    kind = "ZeroReturn"


# Authorization
class AuthorizationError(StakingError):
    kind = "Authorization"


class Unauthorized(AuthorizationError):
    kind = "Unauthorized"


class NotOwner(AuthorizationError):
    kind = "NotOwner"


# Lifecycle
class LifecycleError(StakingError):
    kind = "Lifecycle"


class NotFound(LifecycleError):
    kind = "NotFound"


class AlreadyClaimed(LifecycleError):
    kind = "AlreadyClaimed"


# Operational
class OperationalError(StakingError):
    kind = "Operational"


class Paused(OperationalError):
    kind = "Paused"


class RateLimited(OperationalError):
    kind = "RateLimited"


class BalanceChangeTooLarge(OperationalError):
    kind = "BalanceChangeTooLarge"


class InvalidTimestamp(OperationalError):
    kind = "InvalidTimestamp"


class InvalidEpoch(OperationalError):
    kind = "InvalidEpoch"


class InvalidRewardAmount(OperationalError):
    kind = "InvalidRewardAmount"


class ReentrantCall(OperationalError):
    kind = "ReentrantCall"
