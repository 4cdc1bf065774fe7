from __future__ import annotations

import logging
from threading import Event
from typing import Sequence

from authflow.errors import FlowCancelledError, StrategyProtocolViolation
from authflow.token import AuthFlowResult

from .base import AuthFlow

logger = logging.getLogger(__name__)


class AuthFlowExecutor(AuthFlow):
    """Runs auth flows in order until one returns a token.

    Flows after the first success are never started. Errors from every flow
    that ran are kept, in the order they were reported, including those
    preceding an eventual success.
    """

    def __init__(self, auth_flows: Sequence[AuthFlow]) -> None:
        if auth_flows is None:
            raise ValueError("auth_flows must not be None")
        self._auth_flows = list(auth_flows)

    @property
    def auth_flows(self) -> list[AuthFlow]:
        return list(self._auth_flows)

    def get_token(self, cancel: Event | None = None) -> AuthFlowResult:
        result = AuthFlowResult()

        if not self._auth_flows:
            logger.warning("Warning: There are 0 auth modes to execute!")

        for auth_flow in self._auth_flows:
            flow_name = type(auth_flow).__name__
            if cancel is not None and cancel.is_set():
                result.errors.append(
                    FlowCancelledError(flow_name, f"Cancelled before {flow_name} started.")
                )
                break

            logger.debug("Starting %s...", flow_name)
            attempt = auth_flow.get_token(cancel)

            if not isinstance(attempt, AuthFlowResult):
                message = f"Auth flow '{flow_name}' returned a null AuthFlowResult."
                if attempt is not None:
                    message = f"Auth flow '{flow_name}' returned {type(attempt).__name__}, not an AuthFlowResult."
                result.errors.append(StrategyProtocolViolation(message))
                logger.debug(message)
                continue

            result.add_errors(attempt.errors)
            logger.debug("%s success: %s.", flow_name, attempt.success)
            if attempt.success:
                result.token_result = attempt.token_result
                result.flow_name = attempt.flow_name or flow_name
                break

        return result
