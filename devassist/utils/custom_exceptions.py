"""
Custom exceptions for the application.
"""


class DevAssistError(Exception):
    """Base class for all errors raised by devassist components."""
    pass


class MissingCredentialError(DevAssistError):
    """
    Exception raised when no Gemini API key is configured.
    The user has to be sent to the settings before any request can be made.
    """
    def __init__(self, message="API Key is missing. Please set it in the settings."):
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        return self.message


class QuotaExhaustedError(DevAssistError):
    """
    Exception raised when the generation service reports rate limiting or
    an exhausted quota. Always classified as retryable.
    """
    def __init__(self, message="Too many requests to the generation service. Please wait a moment before trying again."):
        self.message = message
        self.status_code = 429
        super().__init__(self.message)

    def __str__(self):
        return self.message


class StoreUnavailableError(DevAssistError):
    """Exception raised when the project store cannot be read or written."""
    pass


class ArchiveError(DevAssistError):
    """Exception raised when an uploaded archive cannot be read."""
    pass


class ImportFormatError(DevAssistError):
    """Exception raised when an imported project document is malformed."""
    pass


class ProjectNotFoundError(DevAssistError):
    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class NoActiveProjectError(DevAssistError):
    def __init__(self, message="Create or select a project first."):
        super().__init__(message)


class NoFilesLoadedError(DevAssistError):
    def __init__(self, message="No files to analyze. Upload a ZIP archive first."):
        super().__init__(message)


class InsufficientProjectsError(DevAssistError, ValueError):
    """Raised when a merge is requested with fewer than two projects."""
    def __init__(self, count: int):
        self.count = count
        super().__init__(f"At least 2 projects are required to merge, got {count}")


class ExchangeInProgressError(DevAssistError):
    """Raised when a request is started while another one is still loading."""
    def __init__(self, message="Another request is still in progress."):
        super().__init__(message)


class SwitchInProgressError(DevAssistError):
    """Raised when a project switch is started while another one is running."""
    def __init__(self, message="A project switch is already in progress."):
        super().__init__(message)
