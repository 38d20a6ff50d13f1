"""Custom exception hierarchy for applytrack."""


class ApplyTrackError(Exception):
    """Base exception for all applytrack errors."""


class InvalidStatusError(ApplyTrackError):
    """Raised when an application status is not one of the known values."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Unrecognised application status: {value!r}")
        self.value = value


class ComparisonError(ApplyTrackError):
    """Raised when an offer comparison request is malformed."""


class InsufficientOffersError(ComparisonError):
    """Raised when fewer than two offers are submitted for comparison."""


class TooManyOffersError(ComparisonError):
    """Raised when more offers are submitted than a comparison allows."""


class MarketDataUnavailableError(ApplyTrackError):
    """Raised when the market-data service answers without usable data."""


class ApplicationNotFoundError(ApplyTrackError):
    """Raised when a stored application id does not exist."""


class ConfigurationError(ApplyTrackError):
    """Raised when settings are invalid or missing."""


class ReminderNotFoundError(ApplyTrackError):
    """Raised when a stored reminder id does not exist."""


class ContactNotFoundError(ApplyTrackError):
    """Raised when a stored contact id does not exist."""


class InvalidValueError(ApplyTrackError):
    """Raised when a field is given a value outside its allowed choices."""

    def __init__(self, field: str, value: object) -> None:
        super().__init__(f"Invalid {field}: {value!r}")
        self.field = field
        self.value = value
