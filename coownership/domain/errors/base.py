"""Error categories for the co-ownership consensus core.

Callers must be able to tell "the call failed" apart from "the proposal
failed to execute". Only the first kind is raised; the second is recorded
as a proposal status. The categories below cover every raised failure:

- PayloadValidationError: bad payload, malformed percentages, bad amounts
- AuthorizationError: caller is not allowed to perform the action
- NotFoundError: referenced entity does not exist
- ConflictError: duplicate vote, action on a non-Pending proposal

Each category knows its HTTP status and serializes to an RFC 7807
problem document so the API layer needs no per-error formatting.
"""

from __future__ import annotations

from typing import Any

from coownership.domain.exceptions import CoOwnershipError

PROBLEM_TYPE_PREFIX = "urn:coownership"


class ProblemDetailError(CoOwnershipError):
    """Domain error that can be rendered as an RFC 7807 problem document.

    Subclasses set ``http_status``, ``problem_type`` and ``title`` and
    override ``extensions()`` to add identifying attributes.
    """

    http_status: int = 500
    problem_type: str = "error"
    title: str = "Error"

    def extensions(self) -> dict[str, Any]:
        """Return error-specific members of the problem document."""
        return {}

    def to_rfc7807_dict(self) -> dict[str, Any]:
        """Serialize to RFC 7807 problem details.

        Returns:
            Dictionary with type, title, status, detail and extensions.
        """
        result: dict[str, Any] = {
            "type": f"{PROBLEM_TYPE_PREFIX}:{self.problem_type}",
            "title": self.title,
            "status": self.http_status,
            "detail": str(self),
        }
        result.update(self.extensions())
        return result


class PayloadValidationError(ProblemDetailError):
    """Rejected synchronously at propose time; nothing is persisted.

    HTTP Status: 400 Bad Request
    """

    http_status = 400
    problem_type = "validation:invalid-request"
    title = "Invalid Request"


class AuthorizationError(ProblemDetailError):
    """Caller is not an active co-owner or lacks the required role.

    HTTP Status: 403 Forbidden
    """

    http_status = 403
    problem_type = "authorization:forbidden"
    title = "Forbidden"


class NotFoundError(ProblemDetailError):
    """Referenced proposal, ledger or partition does not exist.

    HTTP Status: 404 Not Found
    """

    http_status = 404
    problem_type = "not-found"
    title = "Not Found"


class ConflictError(ProblemDetailError):
    """Request conflicts with current state; no state change happened.

    HTTP Status: 409 Conflict
    """

    http_status = 409
    problem_type = "conflict"
    title = "Conflict"
