"""
Cryptographically secure bounded random values.

Every conversion from entropy to a value goes through a single uniform source,
``randbelow(n)``, which returns an integer uniformly distributed over ``[0, n)``
without modulo bias. The default source is :func:`secrets.randbelow`; callers
may inject another callable with the same contract (tests do).

Float sampling draws 53 bits and interpolates linearly between the adjusted
bounds. Near very large magnitudes the interpolation rounds, so adjacent
representable doubles can map to the same sample. That is a known limitation
of the approach and is accepted as-is.
"""

from __future__ import annotations

import enum
import math
import secrets
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
FLOAT64_MAX = 1.7976931348623157e308

ASCII_START = 32
ASCII_END = 126

UNIT_BITS = 53
_UNIT_SCALE = 1 << UNIT_BITS

UniformSource = Callable[[int], int]

T = TypeVar("T")


class RandomGenerationError(ValueError):
    """Base class for every failure raised by the generators."""


class InvalidRangeError(RandomGenerationError):
    """Lower bound exceeds upper bound."""

    def __init__(self, message: str = "min cannot be greater than max") -> None:
        super().__init__(message)


class BoundaryExhaustedError(RandomGenerationError):
    """Exclusion requested at a bound that has no neighbour toward the interior."""


class EmptyRangeError(RandomGenerationError):
    """The requested bounds leave no value to select."""


class NaNInputError(RandomGenerationError):
    def __init__(self, message: str = "min and max must not be NaN") -> None:
        super().__init__(message)


class NonFiniteInputError(RandomGenerationError):
    def __init__(self, message: str = "min and max must be finite") -> None:
        super().__init__(message)


class ZeroLengthError(RandomGenerationError):
    def __init__(self, message: str = "length must be greater than zero") -> None:
        super().__init__(message)


class EntropyUnavailableError(RandomGenerationError, RuntimeError):
    def __init__(self, message: str = "secure entropy source is unavailable") -> None:
        super().__init__(message)


class Default(enum.Enum):
    """Marker for a bound the caller did not supply."""

    DEFAULT = "default"


DEFAULT = Default.DEFAULT


@dataclass(frozen=True, slots=True)
class Provided(Generic[T]):
    """A bound the caller supplied explicitly."""

    value: T


Bound = Union[Provided[T], Default]


def bound_from_optional(value: T | None) -> Bound[T]:
    """Lift an optional argument into a :data:`Bound`."""
    if value is None:
        return DEFAULT
    return Provided(value)


def _resolve(bound: Bound[T], default: T) -> tuple[T, bool]:
    if isinstance(bound, Provided):
        return bound.value, True
    return default, False


def uniform_below(n: int, randbelow: UniformSource = secrets.randbelow) -> int:
    """Return a secure uniform integer in ``[0, n)``.

    ``n`` may be arbitrarily large. Failures of the operating system entropy
    pool surface as :class:`EntropyUnavailableError` and are not retried.
    """
    if isinstance(n, bool) or not isinstance(n, int):
        raise TypeError(f"bound must be an int, got {type(n).__name__}")
    if n <= 0:
        raise ValueError("bound must be positive")
    try:
        return randbelow(n)
    except (OSError, NotImplementedError) as exc:
        raise EntropyUnavailableError(f"secure entropy source is unavailable: {exc}") from exc


def unit_interval(randbelow: UniformSource = secrets.randbelow) -> float:
    """Return a uniform float in ``[0, 1)`` with 53 bits of precision."""
    return uniform_below(_UNIT_SCALE, randbelow) / _UNIT_SCALE


def resolve_int_range(
    min_bound: Bound[int] = DEFAULT,
    max_bound: Bound[int] = DEFAULT,
    include_min: bool = True,
    include_max: bool = True,
) -> tuple[int, int]:
    """Apply defaults and exclusivity to an integer range request.

    Returns the inclusive ``(low, high)`` pair to sample from. Exclusivity
    flags only apply to bounds that were explicitly provided.
    """
    low, has_min = _resolve(min_bound, 0)
    high, has_max = _resolve(max_bound, INT64_MAX)

    adjusted_low, adjusted_high = low, high
    if has_min and not include_min:
        if low == INT64_MAX:
            raise BoundaryExhaustedError("min cannot be excluded when min is MaxInt64")
        adjusted_low = low + 1
    if has_max and not include_max:
        if high == INT64_MIN:
            raise BoundaryExhaustedError("max cannot be excluded when max is MinInt64")
        adjusted_high = high - 1

    if low > high:
        raise InvalidRangeError()
    if adjusted_low > adjusted_high:
        raise EmptyRangeError("range is empty after applying exclusivity")
    return adjusted_low, adjusted_high


def random_int_in_range(low: int, high: int, randbelow: UniformSource = secrets.randbelow) -> int:
    """Return a secure uniform integer in the inclusive range ``[low, high]``."""
    if low > high:
        raise InvalidRangeError()
    # Python ints do not overflow, so the full int64 span is exact here.
    span = high - low + 1
    return low + uniform_below(span, randbelow)


def random_int(
    min_bound: Bound[int] = DEFAULT,
    max_bound: Bound[int] = DEFAULT,
    include_min: bool = True,
    include_max: bool = True,
    randbelow: UniformSource = secrets.randbelow,
) -> int:
    low, high = resolve_int_range(min_bound, max_bound, include_min, include_max)
    return random_int_in_range(low, high, randbelow)


def random_float(
    min_bound: Bound[float] = DEFAULT,
    max_bound: Bound[float] = DEFAULT,
    include_min: bool = True,
    include_max: bool = True,
    randbelow: UniformSource = secrets.randbelow,
) -> float:
    """Return a secure uniform float between the requested bounds.

    Validation runs in a fixed order and the first failure wins: NaN bounds,
    infinite bounds, ``min > max``, then a single-point range with an excluded
    endpoint. An explicitly provided exclusive bound is moved one ulp toward
    the interior with :func:`math.nextafter`.
    """
    low, has_min = _resolve(min_bound, 0.0)
    high, has_max = _resolve(max_bound, FLOAT64_MAX)
    low = float(low)
    high = float(high)

    if math.isnan(low) or math.isnan(high):
        raise NaNInputError()
    if math.isinf(low) or math.isinf(high):
        raise NonFiniteInputError()
    if low > high:
        raise InvalidRangeError()
    if low == high:
        if include_min and include_max:
            return low
        raise EmptyRangeError("range is empty when min equals max and is excluded")

    adjusted_low, adjusted_high = low, high
    if has_min and not include_min:
        adjusted_low = math.nextafter(low, math.inf)
    if has_max and not include_max:
        adjusted_high = math.nextafter(high, -math.inf)
    if adjusted_low > adjusted_high:
        raise EmptyRangeError("range is empty after applying exclusivity")

    unit = unit_interval(randbelow)
    width = adjusted_high - adjusted_low
    if math.isinf(width):
        # Bounds of opposite sign near FLOAT64_MAX: weight the endpoints instead.
        value = adjusted_low * (1.0 - unit) + adjusted_high * unit
    else:
        value = adjusted_low + unit * width
    return min(max(value, adjusted_low), adjusted_high)


def random_ascii(length: int, randbelow: UniformSource = secrets.randbelow) -> str:
    """Return ``length`` printable ASCII characters drawn independently."""
    if length <= 0:
        raise ZeroLengthError()

    alphabet_size = ASCII_END - ASCII_START + 1
    return "".join(
        chr(ASCII_START + uniform_below(alphabet_size, randbelow)) for _ in range(length)
    )
