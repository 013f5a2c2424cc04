"""Append-only builders producing immutable suites.

Example::

    auth = SuiteBuilder("Authentication")

    @auth.before_all
    async def reset(ctx: ExecutionContext) -> None:
        await ctx.terminate_app()

    login = auth.test("Valid login", tags={"smoke"}, timeout=60)

    @login.step("Launch app")
    async def launch(ctx: ExecutionContext) -> None:
        await ctx.launch_app()

    suite = auth.build()
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from mobile_test_engine.models.suite import Action, Hook, Step, Suite, Test


class BuilderError(Exception):
    """Raised when a suite or test is declared inconsistently."""


def _set_once(current: Hook | None, hook: Hook, what: str) -> Hook:
    if current is not None:
        raise BuilderError(f"{what} hook already declared")
    return hook


@dataclass(kw_only=True)
class TestBuilder:
    """Collects the steps and hooks of one test in declaration order."""

    __test__ = False

    name: str
    description: str = ""
    tags: frozenset[str] = frozenset()
    timeout: float | None = None
    _steps: list[Step] = field(default_factory=list, init=False)
    _before_each: Hook | None = field(default=None, init=False)
    _after_each: Hook | None = field(default=None, init=False)

    def step(self, name: str) -> Callable[[Action], Action]:
        """Decorator appending ``action`` as a named step."""

        def register(action: Action) -> Action:
            self.add_step(name, action)
            return action

        return register

    def add_step(self, name: str, action: Action) -> "TestBuilder":
        self._steps.append(Step(name=name, action=action))
        return self

    def before_each(self, hook: Hook) -> Hook:
        self._before_each = _set_once(self._before_each, hook, "before_each")
        return hook

    def after_each(self, hook: Hook) -> Hook:
        self._after_each = _set_once(self._after_each, hook, "after_each")
        return hook

    def build(self) -> Test:
        return Test(
            name=self.name,
            description=self.description,
            tags=self.tags,
            timeout=self.timeout,
            steps=tuple(self._steps),
            before_each=self._before_each,
            after_each=self._after_each,
        )


@dataclass
class SuiteBuilder:
    """Collects tests and suite hooks; ``build`` snapshots them."""

    name: str
    description: str = ""
    _tests: list[TestBuilder] = field(default_factory=list, init=False)
    _before_all: Hook | None = field(default=None, init=False)
    _after_all: Hook | None = field(default=None, init=False)
    _before_each: Hook | None = field(default=None, init=False)
    _after_each: Hook | None = field(default=None, init=False)

    def test(
        self,
        name: str,
        *,
        description: str = "",
        tags: Iterable[str] = (),
        timeout: float | None = None,
    ) -> TestBuilder:
        """Declare a test and return its builder."""
        if any(existing.name == name for existing in self._tests):
            raise BuilderError(f"test {name!r} already declared in suite {self.name!r}")
        if timeout is not None and timeout <= 0:
            raise BuilderError(f"test {name!r} timeout must be positive")
        builder = TestBuilder(
            name=name, description=description, tags=frozenset(tags), timeout=timeout
        )
        self._tests.append(builder)
        return builder

    def before_all(self, hook: Hook) -> Hook:
        self._before_all = _set_once(self._before_all, hook, "before_all")
        return hook

    def after_all(self, hook: Hook) -> Hook:
        self._after_all = _set_once(self._after_all, hook, "after_all")
        return hook

    def before_each(self, hook: Hook) -> Hook:
        self._before_each = _set_once(self._before_each, hook, "before_each")
        return hook

    def after_each(self, hook: Hook) -> Hook:
        self._after_each = _set_once(self._after_each, hook, "after_each")
        return hook

    def build(self) -> Suite:
        return Suite(
            name=self.name,
            description=self.description,
            tests=tuple(builder.build() for builder in self._tests),
            before_all=self._before_all,
            after_all=self._after_all,
            before_each=self._before_each,
            after_each=self._after_each,
        )
