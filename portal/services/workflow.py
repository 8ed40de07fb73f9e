"""Generic linear multi-step workflow with per-step validators."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence

from portal.errors import ValidationError

logger = logging.getLogger(__name__)

StepValidator = Callable[[dict[str, Any]], bool]


def always(_data: dict[str, Any]) -> bool:
    return True


@dataclass(frozen=True)
class WorkflowStep:
    name: str
    validator: StepValidator = always


class WorkflowEngine:
    """Ordered steps over one shallow-merged data accumulator.

    `advance` only moves when the current step's validator accepts the data,
    and is a no-op on the last step. `retreat` is floored at 0. `commit` hands
    the data to the terminal handler and resets the engine.
    """

    def __init__(
        self,
        steps: Sequence[WorkflowStep],
        on_commit: Callable[[dict[str, Any]], Any],
        initial: Optional[Mapping[str, Any]] = None,
        name: str = "workflow",
    ):
        if not steps:
            raise ValueError("A workflow needs at least one step")
        self.steps = list(steps)
        self.name = name
        self._on_commit = on_commit
        self._initial = dict(initial or {})
        self.current_step = 0
        self.data: dict[str, Any] = dict(self._initial)

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def step(self) -> WorkflowStep:
        return self.steps[self.current_step]

    @property
    def progress(self) -> float:
        return (self.current_step + 1) / self.total_steps

    def is_first_step(self) -> bool:
        return self.current_step == 0

    def is_last_step(self) -> bool:
        return self.current_step == self.total_steps - 1

    def update(self, values: Mapping[str, Any]) -> dict[str, Any]:
        self.data = {**self.data, **values}
        return self.data

    def can_proceed(self) -> bool:
        try:
            return bool(self.step.validator(self.data))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.debug(f"{self.name}: step '{self.step.name}' validator failed: {e}")
            return False

    def advance(self) -> bool:
        """Returns True only when the step index actually moved."""
        if not self.can_proceed():
            return False
        if self.is_last_step():
            return False
        self.current_step += 1
        return True

    def retreat(self) -> bool:
        if self.current_step == 0:
            return False
        self.current_step -= 1
        return True

    def reset(self) -> None:
        self.current_step = 0
        self.data = dict(self._initial)

    def commit(self) -> Any:
        data = dict(self.data)
        logger.debug(f"{self.name}: committing at step {self.current_step + 1}/{self.total_steps}")
        try:
            return self._on_commit(data)
        finally:
            self.reset()


def run_flow(engine: WorkflowEngine, payload: Mapping[str, Any]) -> Any:
    """Drive a whole flow from one payload: merge, pass every step, commit."""
    engine.reset()
    engine.update(payload)
    while True:
        if not engine.can_proceed():
            step = engine.step.name
            engine.reset()
            raise ValidationError(f"{step} is incomplete", field=step)
        if engine.is_last_step():
            break
        engine.advance()
    return engine.commit()
