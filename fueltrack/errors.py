"""Exception hierarchy shared by the store, importer and front ends."""


class FuelTrackError(Exception):
    """Base class for all fueltrack errors."""


class AuthenticationError(FuelTrackError):
    """A store operation was attempted without a signed-in user."""


class ValidationError(FuelTrackError):
    """Input is missing a required field or holds an unusable value."""


class NotFoundError(FuelTrackError):
    """A vehicle, entry or service record id does not exist for this user."""


class BackendError(FuelTrackError):
    """The persistence layer failed to read or write."""


class CsvImportError(ValidationError):
    """The CSV file cannot be imported at all."""
