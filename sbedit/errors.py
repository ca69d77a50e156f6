class SbEditError(Exception):
    """Base error for project codec failures that cannot be recovered from."""

    def __init__(self, message: str, detail: str = ""):
        self.message = message
        self.detail = detail
        super().__init__(message)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message} ({self.detail})"
        return self.message


class ProjectParseError(SbEditError):
    """Raised when project.json is not a readable sb3 project."""


class AssetRetrievalError(SbEditError):
    """Raised when a costume or sound payload cannot be fetched."""

    def __init__(self, message: str, detail: str = "", request=None):
        super().__init__(message, detail)
        self.request = request
