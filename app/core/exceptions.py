# app/core/exceptions.py


class EscalationError(Exception):
    """Base class for errors surfaced to the dashboard user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ImportFileError(EscalationError):
    """The uploaded file can't be read at all; nothing is imported."""


class EscalationValidationError(EscalationError):
    pass


class InvalidPassword(EscalationError):
    def __init__(self, message: str = "Invalid Password"):
        super().__init__(message)


class UnknownPrincipal(EscalationError):
    def __init__(self, message: str = "Invalid Username/Branch ID"):
        super().__init__(message)


class BranchNotPermitted(EscalationError):
    """A branch user touched a record belonging to another branch."""


class StorageError(EscalationError):
    pass
