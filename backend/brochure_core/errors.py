from __future__ import annotations

"""Error taxonomy for brochure builds and the WhatsApp relay.

Validation problems never reach the renderer. Missing fonts and images are
recovered inside the build. Anything else aborts the build as a single
`BuildFailure`.
"""

from typing import Any, List, Optional


class BrochureError(Exception):
    """Base class for every error raised by brochure_core."""


class PropertyValidationError(BrochureError):
    def __init__(self, messages: List[str]):
        super().__init__("; ".join(messages))
        self.messages = list(messages)


class ResourceUnavailable(BrochureError):
    """A font or image could not be loaded. Always recovered locally."""

    def __init__(self, reference: str, reason: str = ""):
        super().__init__(f"{reference}: {reason}" if reason else reference)
        self.reference = reference
        self.reason = reason


class BuildFailure(BrochureError):
    pass


class RelayError(BrochureError):
    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details
