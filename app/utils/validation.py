from app.core.exceptions import InvalidAmountError


def require_amount(amount: object, *, minimum: int = 1, maximum: int | None = None) -> int:
    """Return ``amount`` if it is an integer within bounds, otherwise raise InvalidAmountError."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(amount, minimum=minimum, maximum=maximum)
    if amount < minimum or (maximum is not None and amount > maximum):
        raise InvalidAmountError(amount, minimum=minimum, maximum=maximum)
    return amount
