class SentiViewError(Exception):
    """Base class for user-facing errors. The message is shown as-is."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputError(SentiViewError):
    pass


class AnalysisError(SentiViewError):
    pass


class TranscriptionError(SentiViewError):
    pass


class SessionNotFoundError(SentiViewError):
    pass
