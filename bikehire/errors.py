"""
Exceptions raised by the bike hire preparation pipeline.
"""


class BikeHireError(Exception):
    """Base class for all pipeline errors."""


class MalformedStationRecord(BikeHireError, ValueError):
    """A station record could not be turned into install/removal events."""

    def __init__(self, station_id, reason: str):
        self.station_id = station_id
        self.reason = reason
        super().__init__(f"Station {station_id!r}: {reason}")


class MissingInstallDate(MalformedStationRecord):
    """A station record has no install timestamp (never active)."""

    def __init__(self, station_id):
        super().__init__(station_id, "missing InstallDate")


class UnsortedInputError(BikeHireError, ValueError):
    """Rows are not in strictly ascending date order."""


class EmptyPartitionError(BikeHireError, ValueError):
    """A chronological split produced a zero-length partition."""

    def __init__(self, train_size: int, test_size: int):
        self.train_size = train_size
        self.test_size = test_size
        super().__init__(
            f"Split yields an empty partition (train={train_size}, test={test_size})"
        )


class NotFittedError(BikeHireError, RuntimeError):
    """FeatureBuilder.transform was called before fit."""


class FeatureBuilderStateError(BikeHireError, RuntimeError):
    """FeatureBuilder.fit was called after transform had already been used."""


class StationFetchError(BikeHireError, RuntimeError):
    """The station metadata request failed or returned an unusable payload."""
