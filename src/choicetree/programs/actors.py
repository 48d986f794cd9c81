"""
Interleaving interpreter for a toy message-passing language.

Processes run straight-line operation lists and talk over unbounded FIFO
channels. At every step the scheduler asks the choice port which runnable
process moves next, and ``pick`` asks it which option to bind, so exploring
an ``ActorProgram`` visits every interleaving and every picked value.

A process is runnable while it has operations left, unless its next
operation is a ``recv`` on an empty channel. When nothing is runnable but
some process is still blocked, the run ends in deadlock.
"""

from __future__ import annotations

from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Tuple

from choicetree.core.driver import ChoicePort
from choicetree.errors import ActorRuntimeError
from choicetree.programs.file_spec import (
    ActorProgramFileSpec,
    EmitOp,
    Operation,
    PickOp,
    RecvOp,
    SendOp,
    SpawnOp,
    Value,
)

DEFAULT_MAX_STEPS = 10_000


@dataclass(frozen=True)
class ActorOutcome:
    """What one run of an actor program produced."""

    output: Tuple[Any, ...] = ()
    deadlocked: bool = False

    def describe(self) -> str:
        text = ", ".join(str(value) for value in self.output) or "<no output>"
        return f"{text} (deadlock)" if self.deadlocked else text


@dataclass
class _Process:
    pid: int
    name: str
    operations: List[Operation]
    pc: int = 0
    env: Dict[str, Value] = field(default_factory=dict)

    @property
    def finished(self) -> bool:
        return self.pc >= len(self.operations)

    @property
    def next_op(self) -> Operation:
        return self.operations[self.pc]


class ActorProgram:
    """A loaded actor program; calling it with a choice port performs one run."""

    def __init__(self, spec: ActorProgramFileSpec, max_steps: int = DEFAULT_MAX_STEPS):
        self.spec = spec
        self.max_steps = max_steps

    @property
    def name(self) -> str:
        return self.spec.main

    def __call__(self, choose: ChoicePort) -> ActorOutcome:
        processes = [self._start(0, self.spec.main)]
        channels: Dict[str, Deque[Value]] = defaultdict(deque)
        output: List[Value] = []

        for _ in range(self.max_steps):
            live = [p for p in processes if not p.finished]
            if not live:
                return ActorOutcome(output=tuple(output))

            runnable = [p for p in live if self._can_step(p, channels)]
            if not runnable:
                return ActorOutcome(output=tuple(output), deadlocked=True)

            process = runnable[choose(len(runnable))]
            self._step(process, processes, channels, output, choose)

        raise ActorRuntimeError(f"Program did not finish within {self.max_steps} steps")

    def _start(self, pid: int, name: str) -> _Process:
        try:
            operations = self.spec.processes[name]
        except KeyError:
            raise ActorRuntimeError(f"Unknown process '{name}'") from None
        return _Process(pid=pid, name=name, operations=operations)

    @staticmethod
    def _can_step(process: _Process, channels: Dict[str, Deque[Value]]) -> bool:
        op = process.next_op
        if isinstance(op, RecvOp):
            return bool(channels[op.channel])
        return True

    def _step(
        self,
        process: _Process,
        processes: List[_Process],
        channels: Dict[str, Deque[Value]],
        output: List[Value],
        choose: ChoicePort,
    ) -> None:
        op = process.next_op
        process.pc += 1

        if isinstance(op, SpawnOp):
            processes.append(self._start(len(processes), op.process))
        elif isinstance(op, SendOp):
            channels[op.channel].append(self._resolve(process, op.value))
        elif isinstance(op, RecvOp):
            process.env[op.into] = channels[op.channel].popleft()
        elif isinstance(op, PickOp):
            process.env[op.into] = self._resolve(process, op.options[choose(len(op.options))])
        elif isinstance(op, EmitOp):
            output.append(self._resolve(process, op.value))

    @staticmethod
    def _resolve(process: _Process, value: Value) -> Value:
        """``$name`` reads a variable of the running process; anything else is literal."""
        if isinstance(value, str) and value.startswith("$"):
            key = value[1:]
            if key not in process.env:
                raise ActorRuntimeError(f"Unknown variable '{key}' in process '{process.name}' (pid {process.pid})")
            return process.env[key]
        return value


__all__ = ["ActorOutcome", "ActorProgram", "DEFAULT_MAX_STEPS"]
