"""Transition invocation and validation."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from smalldb.core.exceptions import (
    IllegalTransitionError,
    MachineConfigurationError,
    PermissionDeniedError,
    UnexpectedResultStateError,
    UnknownTransitionError,
)
from smalldb.core.logging import TransitionLogContext, build_log_event
from smalldb.machine.contracts import InstanceId, PermissionChecker, StateProvider
from smalldb.machine.description import MachineDescription, ReturnSemantics, Transition, parse_returns

logger = logging.getLogger(__name__)

TransitionMethod = Callable[..., Any]


class TransitionEngine:
    """Invoke transitions of one machine type and verify their outcome.

    The engine owns no instance data. Every invocation asks ``provider`` for
    the current state, runs the bound method and asks again for the state the
    instance ended in; ``checker`` decides about permissions. Method
    identifiers used by the description are resolved against ``methods`` and
    return tags are parsed here, so a missing implementation or an unknown
    tag is reported before any instance is touched.
    """

    def __init__(
        self,
        description: MachineDescription,
        provider: StateProvider,
        checker: PermissionChecker,
        methods: Mapping[str, TransitionMethod],
        machine_type: str | None = None,
    ) -> None:
        missing = sorted(name for name in description.method_names() if not callable(methods.get(name)))
        if missing:
            raise MachineConfigurationError(
                f"Transition methods not implemented for machine {machine_type or '?'}: {', '.join(missing)}"
            )
        self.description = description
        self.provider = provider
        self.checker = checker
        self.machine_type = machine_type
        self._methods = MappingProxyType({name: methods[name] for name in description.method_names()})
        self._returns = MappingProxyType(
            {name: parse_returns(name, action.returns) for name, action in description.actions.items()}
        )

    def invoke_transition(
        self, id: InstanceId, action_name: str, *args: Any, **kwargs: Any
    ) -> tuple[Any, ReturnSemantics]:
        """Invoke ``action_name`` on instance ``id``.

        The bound method receives ``id`` followed by ``args``/``kwargs``.
        Returns ``(result, returns)``; for ``ReturnSemantics.NEW_ID`` the
        result is the ID of the instance the transition created.
        Exceptions raised by the method itself are not wrapped.
        """
        action = self.description.actions.get(action_name)
        if action is None:
            logger.warning(
                "machine.transition.unknown",
                extra=self._log_extra("machine.transition.unknown", action_name, id),
            )
            raise UnknownTransitionError(action_name)

        state = self.provider.get_state(id)

        transition = action.transitions.get(state)
        if transition is None:
            logger.info(
                "machine.transition.rejected",
                extra=self._log_extra("machine.transition.rejected", action_name, id, state, reason="illegal"),
            )
            raise IllegalTransitionError(action_name, state)

        self._validate_targets(action_name, state, transition)

        if transition.permissions is not None and not self.checker.check_permissions(transition.permissions, id):
            logger.info(
                "machine.transition.rejected",
                extra=self._log_extra("machine.transition.rejected", action_name, id, state, reason="permissions"),
            )
            raise PermissionDeniedError(action_name, state)

        method = self._methods[action.method_for(transition)]
        logger.debug(
            "machine.transition.invoked",
            extra=self._log_extra("machine.transition.invoked", action_name, id, state),
        )
        result = method(id, *args, **kwargs)

        returns = self._returns[action_name]
        if returns == ReturnSemantics.NEW_ID:
            id = result

        new_state = self.provider.get_state(id)
        if new_state not in transition.targets:
            logger.error(
                "machine.transition.unexpected_state",
                extra=self._log_extra(
                    "machine.transition.unexpected_state",
                    action_name,
                    id,
                    state,
                    new_state=new_state,
                    expected_states=list(transition.targets),
                ),
            )
            raise UnexpectedResultStateError(action_name, state, new_state, tuple(transition.targets))

        logger.info(
            "machine.transition.completed",
            extra=self._log_extra("machine.transition.completed", action_name, id, state, new_state=new_state),
        )
        return result, returns

    @staticmethod
    def _validate_targets(action_name: str, state: str, transition: Transition) -> None:
        targets = transition.targets
        if not isinstance(targets, (tuple, list, frozenset, set)) or not targets:
            raise MachineConfigurationError(
                f'Target state is not defined for transition "{action_name}" from state "{state}".'
            )

    def _log_extra(
        self,
        event: str,
        action_name: str,
        id: InstanceId,
        state: str | None = None,
        **fields: Any,
    ) -> dict[str, Any]:
        context = TransitionLogContext(
            machine_type=self.machine_type,
            action=action_name,
            instance_id=id,
            source_state=state,
        )
        return build_log_event(event, context, **fields)
