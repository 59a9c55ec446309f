"""Failures raised while turning an utterance into an intent decision."""


class IntentResolutionError(Exception):
    """Base class. The message doubles as the diagnostic sent to the caller."""


class BackendUnavailable(IntentResolutionError):
    """The completion backend could not be reached or errored out."""


class MalformedOutput(IntentResolutionError):
    """Backend text is not a single JSON object once fences are stripped."""


class SchemaViolation(MalformedOutput):
    """JSON decoded but does not match the decision schema or the context fields."""
