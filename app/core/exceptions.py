from fastapi import HTTPException, status

from app.core.enums import Resource


class GameError(HTTPException):
    """Base class for every error raised by the game core.

    Subclasses HTTPException so the API exception handlers can render ``detail`` directly.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=self.status_code, detail=detail)


class ConfigurationError(GameError):
    """Data-setup bug. Retrying will not help."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class EmptyRankPoolError(ConfigurationError):
    def __init__(self, rank: str) -> None:
        self.rank = rank
        super().__init__(f"No powers are configured for rank: {rank}")


class RankTableError(ConfigurationError):
    pass


class InsufficientResourceError(GameError):
    def __init__(self, resource: Resource, *, required: int, available: int) -> None:
        self.resource = resource
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient {resource.value}. Have: {available}, Need: {required}, "
            f"Short by: {self.shortfall}"
        )

    @property
    def shortfall(self) -> int:
        return self.required - self.available


class InsufficientDrawsError(InsufficientResourceError):
    def __init__(self, *, required: int, available: int) -> None:
        super().__init__(Resource.DRAWS, required=required, available=available)


class InsufficientCoinsError(InsufficientResourceError):
    def __init__(self, *, required: int, available: int) -> None:
        super().__init__(Resource.COINS, required=required, available=available)


class InsufficientBankError(InsufficientResourceError):
    def __init__(self, *, required: int, available: int) -> None:
        super().__init__(Resource.BANK, required=required, available=available)


class InvalidAmountError(GameError):
    def __init__(self, amount: object, *, minimum: int = 1, maximum: int | None = None) -> None:
        self.amount = amount
        self.minimum = minimum
        self.maximum = maximum
        if maximum is None:
            detail = f"Invalid amount {amount!r}: must be an integer of at least {minimum}"
        else:
            detail = (
                f"Invalid amount {amount!r}: must be an integer between {minimum} and {maximum}"
            )
        super().__init__(detail)


class PlayerNotFoundError(GameError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, player_id: int) -> None:
        self.player_id = player_id
        super().__init__(f"Player not found: {player_id}")


class PlayerAlreadyExistsError(GameError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, player_id: int) -> None:
        self.player_id = player_id
        super().__init__(f"Player already registered: {player_id}")


class PowerNotFoundError(GameError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, power_id: int) -> None:
        self.power_id = power_id
        super().__init__(f"Power not found or not owned: {power_id}")


class ConcurrentModificationError(GameError):
    status_code = status.HTTP_409_CONFLICT


class ArenaEntryNotFoundError(GameError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, player_id: int) -> None:
        self.player_id = player_id
        super().__init__(f"Player has not joined the arena: {player_id}")


class CooldownError(GameError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, action: str, *, retry_after: int) -> None:
        self.action = action
        self.retry_after = retry_after
        super().__init__(f"{action} is on cooldown for another {retry_after} seconds")
