"""
Domain errors raised by the service layer.

Routers let these propagate; main.py turns them into JSON responses with the
status code declared on each class.
"""


class GraphStoreError(Exception):
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(GraphStoreError):
    """A referenced user, project or edge does not exist."""
    status_code = 404


class Unauthorized(GraphStoreError):
    """The requester does not own the resource being mutated."""
    status_code = 403


class InvalidOperation(GraphStoreError):
    """Semantically invalid request, e.g. following yourself."""
    status_code = 400


class HandleTaken(InvalidOperation):
    status_code = 409


class StoreUnavailable(GraphStoreError):
    """The database, blob store or identity provider rejected or timed out the call."""
    status_code = 503
