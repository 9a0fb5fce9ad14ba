"""Exception hierarchy for the verification pipeline.

Only ``ExtractionError`` and ``InvalidInputError`` ever escape a
verification run. Everything else is caught inside the engine and
degraded into a warning or a worst-case claim status.
"""


class VerityError(Exception):
    """Base class for all verification errors."""


class InvalidInputError(VerityError, ValueError):
    """The submitted text cannot be verified (e.g. it is empty)."""


class ConfigurationError(VerityError):
    """The service configuration is invalid."""


class ProviderError(VerityError):
    """A language-model provider failed (transport, auth, quota)."""


class ResponseParseError(VerityError):
    """A model response could not be decoded into a JSON object."""


class ExtractionError(VerityError):
    """Claim extraction failed. Fatal to the whole run."""


class VerificationError(VerityError):
    """Adjudicating a single claim failed. Degrades that claim only."""


class SearchError(VerityError):
    """An evidence source failed to return results."""


class StoreError(VerityError):
    """A persistence operation failed."""
