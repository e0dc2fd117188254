from typing import List, Optional


class PortalError(Exception):
    """Base class for errors the web layer knows how to render."""


class ValidationError(PortalError):
    def __init__(self, messages: List[str]):
        super().__init__("; ".join(messages))
        self.messages = messages


class DuplicateKey(PortalError):
    """Email or SRN already belongs to another student."""

    MESSAGES = {
        "email": "Email already registered",
        "srn": "SRN already registered",
    }

    def __init__(self, field: str):
        super().__init__(f"duplicate {field}")
        self.field = field

    @property
    def message(self) -> str:
        return self.MESSAGES.get(self.field, "Account already registered")


class NotFound(PortalError):
    def __init__(self, what: str, key: Optional[str] = None):
        super().__init__(f"{what} not found: {key}" if key else f"{what} not found")
        self.what = what
        self.key = key


class Unauthenticated(PortalError):
    pass


class InternalError(PortalError):
    pass
