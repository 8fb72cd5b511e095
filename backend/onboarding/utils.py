from decimal import Decimal, InvalidOperation, ROUND_HALF_UP


def round_half_up(value: float | int | Decimal) -> int:
    """
    Round to the nearest integer, halves away from zero.

    2.5 -> 3, 1200.0000000000002 -> 1200
    """
    try:
        quantized = Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError(f"Cannot round non-finite value: {value}") from exc
    return int(quantized)
