from typing import Any, Mapping, Optional


class StoreOpenError(Exception):
    """Raised when the meal store cannot be opened or its schema cannot be created.

    This is the only error the data layer surfaces. It is raised while
    constructing the data service so the embedding application can decide
    whether to abort or fall back.

    Attributes:
        message: human-readable message
        details: optional mapping with extra context (container, url, cause)
        code: optional machine-readable error code
    """

    def __init__(self, message: str = "Could not open store", details: Optional[Mapping[str, Any]] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        self.code = code

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"message": self.message}
        if self.code:
            payload["code"] = self.code
        if self.details:
            payload["details"] = self.details
        return payload

    def __str__(self) -> str:
        return self.message
