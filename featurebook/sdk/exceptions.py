"""Custom exception types for the featurebook SDK."""

__all__ = [
    "FeatureBookError",
    "RefreshError",
    "MissingEndpointError",
    "TransportError",
    "MalformedPayloadError",
    "LocalDataError",
    "NoLocalDataError",
    "MalformedLocalDataError",
    "PayloadDecodeError",
    "DecryptionError",
]


class FeatureBookError(Exception):
    """Base class for all featurebook errors."""
    pass


class RefreshError(FeatureBookError):
    """Raised (or reported) when a remote refresh cannot produce features."""
    pass


class MissingEndpointError(RefreshError):
    """No host URL is configured, so nothing can be fetched."""

    def __init__(self) -> None:
        super().__init__("no feature endpoint configured")


class TransportError(RefreshError):
    """The remote fetch failed before a payload was received."""

    def __init__(self, endpoint: str, detail: str) -> None:
        super().__init__(f"failed to fetch features from {endpoint}: {detail}")
        self.endpoint = endpoint
        self.detail = detail


class MalformedPayloadError(RefreshError):
    """The remote payload could not be decoded into a feature mapping."""
    pass


class LocalDataError(FeatureBookError):
    """Base class for disk cache read failures."""
    pass


class NoLocalDataError(LocalDataError):
    """No cached payload exists under the requested key."""

    def __init__(self, key: str) -> None:
        super().__init__(f"no cached payload under {key!r}")
        self.key = key


class MalformedLocalDataError(LocalDataError):
    """A cached payload exists but does not decode into a feature mapping."""

    def __init__(self, key: str, detail: str) -> None:
        super().__init__(f"cached payload under {key!r} is malformed: {detail}")
        self.key = key
        self.detail = detail


class PayloadDecodeError(ValueError):
    """Raised by codecs when bytes do not describe a feature mapping."""
    pass


class DecryptionError(FeatureBookError):
    """Describes why an encrypted feature token was rejected."""

    def __init__(self, stage: str, detail: str) -> None:
        super().__init__(f"encrypted features rejected at {stage}: {detail}")
        self.stage = stage
        self.detail = detail
