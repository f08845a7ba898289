"""
Exceptions raised by the hatching services.

All errors derive from :class:`HatchingError`, which is itself a
``ValueError`` so callers that already guard geometry calls with
``except ValueError`` keep working.
"""

from __future__ import annotations


class HatchingError(ValueError):
    """Base class for hatching failures."""


class InputValidationError(HatchingError):
    """The polygon or the hatching parameters are malformed."""


class DegenerateSegmentError(HatchingError):
    """A segment cannot be extended because its endpoints coincide."""


class SweepLimitError(HatchingError):
    """A directional sweep exceeded the configured number of passes."""
