"""Completion-service error types."""


class CompletionError(Exception):
    """The completion service could not produce a usable response."""


class MissingCredentialError(CompletionError):
    """No API key was configured for the completion service."""

    def __init__(self, variable: str) -> None:
        self.variable = variable
        super().__init__(f"No API key configured: set {variable} or 'model.api_key' in the config")
