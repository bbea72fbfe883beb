"""Custom exceptions for the SmallDB state machine engine."""

from __future__ import annotations


class SmallDBException(Exception):
    """Base exception for SmallDB."""

    pass


class ConfigurationError(SmallDBException):
    """Raised when runtime configuration is invalid."""

    pass


class MachineConfigurationError(SmallDBException):
    """Raised when a machine description is malformed or incomplete."""

    pass


class InvalidReturnSemanticsError(MachineConfigurationError):
    """Raised when an action declares an unknown return value semantics."""

    pass


class NotFoundError(SmallDBException):
    """Raised when a machine instance or machine type is not found."""

    pass


class InvalidIdError(SmallDBException, ValueError):
    """Raised when an instance ID is empty or does not match the primary key."""

    pass


class DatabaseError(SmallDBException):
    """Raised when a storage operation fails."""

    pass


class AuthorizationError(SmallDBException):
    """Raised when the caller lacks required permissions."""

    pass


class TransitionError(SmallDBException):
    """Base class for rejected transition invocations."""

    def __init__(self, message: str, action: str, state: str | None = None) -> None:
        super().__init__(message)
        self.action = action
        self.state = state


class UnknownTransitionError(TransitionError):
    """Raised when the requested action is not declared at all."""

    def __init__(self, action: str) -> None:
        super().__init__(f"Unknown transition requested: {action}", action=action)


class IllegalTransitionError(TransitionError):
    """Raised when the action exists but is not declared for the current state."""

    def __init__(self, action: str, state: str) -> None:
        super().__init__(f'Transition "{action}" not found in state "{state}".', action=action, state=state)


class PermissionDeniedError(TransitionError, AuthorizationError):
    """Raised when the permission hook refuses the transition."""

    def __init__(self, action: str, state: str) -> None:
        super().__init__(f'Access denied to transition "{action}".', action=action, state=state)


class UnexpectedResultStateError(TransitionError):
    """Raised when a transition leaves the instance outside its declared targets."""

    def __init__(self, action: str, source_state: str, new_state: str, expected_states: tuple[str, ...]) -> None:
        super().__init__(
            f'State machine ended in unexpected state "{new_state}" after transition "{action}" '
            f'from state "{source_state}". Expected states: {", ".join(expected_states)}.',
            action=action,
            state=source_state,
        )
        self.source_state = source_state
        self.new_state = new_state
        self.expected_states = expected_states
