from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP, getcontext

getcontext().prec = 28
CENTS = Decimal("0.01")
ZERO = Decimal("0")

# balances within one cent of zero count as settled
TOLERANCE = Decimal("0.01")


def qround(d: Decimal) -> Decimal:
    return d.quantize(CENTS, rounding=ROUND_HALF_UP)


def qfloor(d: Decimal) -> Decimal:
    return d.quantize(CENTS, rounding=ROUND_DOWN)


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def is_settled(amount: Decimal, tolerance: Decimal = TOLERANCE) -> bool:
    return abs(amount) <= tolerance
