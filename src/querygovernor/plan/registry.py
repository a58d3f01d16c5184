"""
Rule registry for plan rules.

Rules register themselves with the @register_rule decorator at import time;
the analyzer asks the registry which rules exist. After import the registry
is only read, so sharing it between concurrent analyses is safe.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from querygovernor.plan.rules.base import PlanRule

T = TypeVar("T", bound="PlanRule")


class RuleRegistry:
    """
    Centralized registry for plan rules.

    Example:
        @register_rule
        class MyRule(PlanRule):
            rule_id = "MY_RULE"
            ...

        rules = get_registry().filter(exclude={"ESTIMATE_MISMATCH"})
    """

    def __init__(self) -> None:
        self._rules: dict[str, type[PlanRule]] = {}

    def register(self, rule_cls: type[T]) -> type[T]:
        """
        Register a rule class.

        Raises:
            ValueError: If a rule with the same ID is already registered
        """
        rule_id = rule_cls.rule_id

        if rule_id in self._rules:
            existing = self._rules[rule_id]
            raise ValueError(
                f"Rule '{rule_id}' already registered by {existing.__module__}.{existing.__name__}. "
                f"Cannot register {rule_cls.__module__}.{rule_cls.__name__}"
            )

        self._rules[rule_id] = rule_cls
        return rule_cls

    def get(self, rule_id: str) -> type[PlanRule] | None:
        return self._rules.get(rule_id)

    def all(self) -> list[type[PlanRule]]:
        """All registered rule classes, in registration order."""
        return list(self._rules.values())

    def all_ids(self) -> list[str]:
        return list(self._rules.keys())

    def filter(
        self,
        include: set[str] | None = None,
        exclude: set[str] | None = None,
    ) -> list[type[PlanRule]]:
        """
        Registered rules restricted to include (if given) minus exclude.
        """
        rules = self.all()
        if include is not None:
            rules = [r for r in rules if r.rule_id in include]
        if exclude:
            rules = [r for r in rules if r.rule_id not in exclude]
        return rules

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: str) -> bool:
        return rule_id in self._rules


_registry = RuleRegistry()


def get_registry() -> RuleRegistry:
    """Get the global rule registry (populated by importing plan.rules)."""
    import querygovernor.plan.rules  # noqa: F401  (registers built-in rules)

    return _registry


def register_rule(rule_cls: type[T]) -> type[T]:
    """Decorator that adds a rule class to the global registry."""
    return _registry.register(rule_cls)
