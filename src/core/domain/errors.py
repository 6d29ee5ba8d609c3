"""Errors raised by the probe harness."""

from __future__ import annotations

from core.domain.models import ProbeStep


class ProbeAborted(RuntimeError):
    """The run cannot continue: transport failure or a non-2xx response.

    Carries the failing step so the reporter can still show it.
    """

    def __init__(self, step: ProbeStep) -> None:
        self.step = step
        super().__init__(f"{step.name}: {step.error or 'request failed'}")
