"""Error taxonomy for planning and rendering.

  - ValidationError: malformed transcript or effect data. Raised by the
    per-item parsers and recovered right where the item is consumed
    (clamped, defaulted, or skipped).
  - ExternalServiceError: an AI collaborator's output is missing or
    unusable. Recovered by the heuristic fallback at the call site.
  - MediaError: the source video cannot be loaded, decoded or seeked.
    Fatal to the export job.
  - AssetError: a single overlay image failed to load. The asset is
    skipped and the job continues.
"""


class CinecomposeError(Exception):
    """Base class for all cinecompose errors."""


class ValidationError(CinecomposeError, ValueError):
    pass


class ExternalServiceError(CinecomposeError):
    pass


class MediaError(CinecomposeError, RuntimeError):
    pass


class AssetError(CinecomposeError):
    pass
