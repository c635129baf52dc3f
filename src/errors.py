"""Exceptions raised by the league core.

Every error carries the HTTP status it maps to, a stable ``code`` and a
generic Portuguese ``message`` shown to end users. The string passed to the
constructor is the internal description and only goes to the logs.
"""


class LeagueError(Exception):
    """Base exception for all league errors."""

    status_code = 500
    code = "Unknown"
    message = "Ocorreu um erro inesperado. Tente novamente mais tarde."


class NotFoundError(LeagueError):
    """Raised when a match, tournament or player does not exist."""

    status_code = 404
    code = "NotFound"
    message = "Registro não encontrado."


class InvalidArgumentError(LeagueError):
    """Raised for malformed input such as an empty score or a foreign winner."""

    status_code = 400
    code = "InvalidArgument"
    message = "Dados inválidos. Verifique os campos e tente novamente."


class InvalidStateError(LeagueError):
    """Raised when the record is in the wrong state for the operation."""

    status_code = 409
    code = "InvalidState"
    message = "Esta operação não é permitida no estado atual."


class InvalidTransitionError(InvalidStateError):
    """Raised for a tournament status change outside the lifecycle."""

    code = "InvalidTransition"
    message = "Mudança de status não permitida."


class ConcurrentUpdateError(InvalidStateError):
    """Raised when another writer changed the record first."""

    code = "ConcurrentUpdate"
    message = "O registro foi alterado por outra pessoa. Recarregue e tente novamente."


class AlreadyRegisteredError(LeagueError):
    status_code = 409
    code = "AlreadyRegistered"
    message = "Já cadastrado."


class UnauthorizedError(LeagueError):
    status_code = 403
    code = "Unauthorized"
    message = "Você não tem permissão para realizar esta operação."


class UnknownError(LeagueError):
    """Wraps an unexpected store failure."""
