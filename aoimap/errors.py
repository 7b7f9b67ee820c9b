"""Exception hierarchy shared by the stores and the intake pipeline."""


class AOIError(Exception):
    """Base class for all AOI-MAP errors."""


class MalformedInputError(AOIError):
    """Input could not be parsed or holds no recognised geometry."""


class UnsupportedFormatError(AOIError):
    """A file type that is recognised but not handled, or not recognised at all."""


class RemoteStoreError(AOIError):
    """The remote feature store rejected or could not complete a call."""
