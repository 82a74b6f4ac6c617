"""
Exception types raised by the crop core.

Every error derives from ``CropToolError`` so the export pipeline can
catch them at one boundary and turn them into an ``ExportResult``.
None of these conditions is transient, so nothing here is retried.
"""


class CropToolError(Exception):
    """Base class for all crop tool failures."""


class InvalidFormat(CropToolError, ValueError):
    """Ratio text is malformed or not positive."""


class DuplicateRatio(CropToolError):
    """Ratio is already present among the active ratios."""


class EmptyRequestSet(CropToolError):
    """A composite was requested with no ratios."""


class SourceUnavailable(CropToolError):
    """The source image cannot be read or sampled."""


class DecodeError(SourceUnavailable):
    """The source bytes could not be decoded into an image."""


class RenderTargetExhausted(CropToolError):
    """The output raster is too large to allocate."""


class EncodeFailure(CropToolError):
    """The finished raster could not be encoded to PNG bytes."""
