from __future__ import annotations


class FetchError(Exception):
    """Base class for every failure of an outbound data fetch."""


class CredentialMissingError(FetchError):
    pass


class NetworkError(FetchError):
    pass


class ResponseError(FetchError):
    """The backend answered, but not with anything usable."""


class ResponseParseError(ResponseError):
    pass


class BackendContractError(ResponseError):
    """A schema-constrained endpoint returned output that breaks its schema."""
