class CatalogException(Exception):
    """Base exception for catalog application."""


class ProviderNotFoundException(CatalogException):
    """Raised when a provider is not found."""


class ProviderAlreadyExistsException(CatalogException):
    """Raised when a provider with the same name already exists."""


class ModelNotFoundException(CatalogException):
    """Raised when a model is not found."""


class ModelAlreadyExistsException(CatalogException):
    """Raised when the provider already has a model with the same upstream id."""


class ModelUnavailableException(CatalogException):
    """Raised when a model or its provider is disabled."""


class ProviderRequestException(CatalogException):
    """Raised when the upstream provider cannot be reached or answers with an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamTimeoutException(ProviderRequestException):
    """Raised when the upstream provider does not answer in time or the request is aborted."""


class UpstreamStatusException(ProviderRequestException):
    """Raised when the upstream provider answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int, body: str):
        super().__init__(message, status_code=status_code)
        self.body = body
