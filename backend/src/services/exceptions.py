"""Shared exceptions for service layer operations."""


class ServiceError(Exception):
    """
    Base class for caller-facing precondition failures.

    The message is user-actionable and safe to return verbatim. Infrastructure
    failures (database, cache, transport) never use this hierarchy.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ServerNotFoundError(ServiceError):
    """Raised when the referenced server does not exist."""

    def __init__(self, server_id: str) -> None:
        self.server_id = server_id
        super().__init__("Server does not exist.")


class ChannelNotFoundError(ServiceError):
    """Raised when the channel does not exist under the given server."""

    def __init__(self, channel_id: str) -> None:
        self.channel_id = channel_id
        super().__init__("Channel does not exist.")


class ChannelLimitExceededError(ServiceError):
    """Raised when a server already holds the maximum number of channels."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__("You already created the maximum amount of channels for this server.")


class CannotDeleteDefaultChannelError(ServiceError):
    """Raised when deleting the channel a server designates as its default."""

    def __init__(self, channel_id: str) -> None:
        self.channel_id = channel_id
        super().__init__("You cannot delete the default channel.")


class ServerMemberNotFoundError(ServiceError):
    """Raised when the user is not a member of the server."""

    def __init__(self, server_id: str, user_id: str) -> None:
        self.server_id = server_id
        self.user_id = user_id
        super().__init__("You are not a member of this server.")


class AlreadyServerMemberError(ServiceError):
    """Raised when adding a user who is already a member."""

    def __init__(self, server_id: str, user_id: str) -> None:
        self.server_id = server_id
        self.user_id = user_id
        super().__init__("You are already in this server.")


class InviteNotFoundError(ServiceError):
    """Raised when an invite code does not exist."""

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__("Invalid invite code.")
