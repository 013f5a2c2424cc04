"""Immutable Suite → Test → Step tree consumed by the scheduler."""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mobile_test_engine.context import ExecutionContext

type Action = Callable[["ExecutionContext"], Awaitable[object]]
type Hook = Action


@dataclass(frozen=True, kw_only=True)
class Step:
    """One named action or flow-control primitive."""

    name: str
    action: Action = field(repr=False)


@dataclass(frozen=True, kw_only=True)
class Test:
    """Ordered steps with their own timeout, tags and per-test hooks."""

    __test__ = False

    name: str
    description: str = ""
    tags: frozenset[str] = frozenset()
    timeout: float | None = None
    steps: Sequence[Step] = ()
    before_each: Hook | None = field(default=None, repr=False)
    after_each: Hook | None = field(default=None, repr=False)


@dataclass(frozen=True, kw_only=True)
class Suite:
    """Ordered tests sharing setup and teardown hooks.

    ``before_each``/``after_each`` declared on the suite apply to every test
    that does not declare its own.
    """

    name: str
    description: str = ""
    tests: Sequence[Test] = ()
    before_all: Hook | None = field(default=None, repr=False)
    after_all: Hook | None = field(default=None, repr=False)
    before_each: Hook | None = field(default=None, repr=False)
    after_each: Hook | None = field(default=None, repr=False)

    def hooks_for(self, test: Test) -> tuple[Hook | None, Hook | None]:
        """Resolve the before/after-each hooks that apply to ``test``."""
        return (
            test.before_each or self.before_each,
            test.after_each or self.after_each,
        )
