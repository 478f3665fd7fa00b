# orderpipe/domain/errors.py
"""
Error taxonomy of the cart-to-order pipeline.

Every pipeline failure is a ``PipelineError`` subclass with a stable ``kind``.
The API layer renders the kind and maps it to an HTTP status; services never
swallow or retry these.
"""


class PipelineError(Exception):
    kind = "PipelineError"
    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind)
        self.message = message or self.kind


class NotFound(PipelineError):
    kind = "NotFound"
    status_code = 404


class Forbidden(PipelineError):
    kind = "Forbidden"
    status_code = 403


class Unauthenticated(PipelineError):
    kind = "Unauthenticated"
    status_code = 401


class EmptyCart(PipelineError):
    kind = "EmptyCart"
    status_code = 400


class ConflictingStore(PipelineError):
    kind = "ConflictingStore"
    status_code = 409


class InvalidQuantity(PipelineError):
    kind = "InvalidQuantity"
    status_code = 400


class MenuUnavailable(PipelineError):
    kind = "MenuUnavailable"
    status_code = 409


class StoreUnavailable(PipelineError):
    kind = "StoreUnavailable"
    status_code = 409


class IllegalTransition(PipelineError):
    kind = "IllegalTransition"
    status_code = 409


class ConcurrentModification(PipelineError):
    kind = "ConcurrentModification"
    status_code = 409


class CatalogUnavailable(Exception):
    """Catalog transport failure. Internal, not part of the pipeline taxonomy."""
