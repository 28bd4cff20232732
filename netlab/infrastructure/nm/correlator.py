"""
Signal Correlator
=================

Turns NetworkManager's asynchronous ``StateChanged`` signals into a single
awaited outcome with a deadline.

States: Waiting -> Matched(activated) | Matched(deactivated) | TimedOut

    correlator = SignalCorrelator(subscription, deadline=30.0)
    outcome = await correlator.wait(match=is_ours, terminal=(ActivationState.ACTIVATED,))

The deadline is absolute for the whole wait: unrelated or non-terminal
signals never extend it. Cancelling the awaiting task propagates
``CancelledError`` out of ``wait``.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from netlab.core.errors import CorrelationTimeoutError, NetlabError
from netlab.domain.models import ActivationState

from .bus import SignalSubscription, StateChangeSignal

logger = logging.getLogger(__name__)

SignalPredicate = Callable[[StateChangeSignal], "bool | Awaitable[bool]"]

DEFAULT_TERMINAL = (ActivationState.ACTIVATED, ActivationState.DEACTIVATED)


@dataclass(frozen=True)
class CorrelationOutcome:
    """The first terminal signal accepted by the predicate, DEACTIVATED included."""

    state: ActivationState
    signal: StateChangeSignal

    @property
    def activated(self) -> bool:
        return self.state is ActivationState.ACTIVATED


class SignalCorrelator:
    """Race a signal subscription against a deadline."""

    def __init__(
        self,
        subscription: SignalSubscription,
        deadline: float,
        timeout_error: type[CorrelationTimeoutError] = CorrelationTimeoutError,
        label: str = "connection",
    ) -> None:
        self.subscription = subscription
        self.deadline = deadline
        self.timeout_error = timeout_error
        self.label = label
        self.signals_seen = 0

    async def wait(
        self,
        match: SignalPredicate | None = None,
        terminal: Iterable[ActivationState] = DEFAULT_TERMINAL,
    ) -> CorrelationOutcome:
        """
        Wait for the first terminal signal accepted by ``match``.

        Raises:
            CorrelationTimeoutError (or ``timeout_error``) when the deadline
            elapses first.
        """
        terminal_states = frozenset(terminal)
        loop = asyncio.get_running_loop()
        started = loop.time()

        try:
            return await asyncio.wait_for(
                self._first_match(match, terminal_states),
                timeout=self.deadline,
            )
        except asyncio.TimeoutError:
            elapsed = loop.time() - started
            logger.warning(
                "%s: no terminal state after %.1fs (%d signals seen)",
                self.label,
                elapsed,
                self.signals_seen,
            )
            raise self.timeout_error(
                f"{self.label} timeout after {self.deadline:g}s",
                deadline=self.deadline,
            ) from None

    async def _first_match(
        self,
        match: SignalPredicate | None,
        terminal: frozenset[ActivationState],
    ) -> CorrelationOutcome:
        while True:
            signal = await self.subscription.get()
            self.signals_seen += 1

            if not signal.is_active_state_change:
                logger.debug("Unhandled signal: %s.%s on %s", signal.interface, signal.member, signal.path)
                continue

            state = signal.state
            if state not in terminal:
                logger.debug("%s: %s is %s, still waiting", self.label, signal.path, state.name.lower())
                continue

            if match is not None and not await self._accepts(match, signal):
                continue

            logger.info("%s: %s %s", self.label, signal.path, state.name.lower())
            return CorrelationOutcome(state=state, signal=signal)

    async def _accepts(self, match: SignalPredicate, signal: StateChangeSignal) -> bool:
        try:
            result = match(signal)
            if inspect.isawaitable(result):
                result = await result
            return bool(result)
        except NetlabError as e:
            logger.warning("%s: could not check %s: %s", self.label, signal.path, e)
            return False
