"""
Composer Kernel — Errors

Resolver and serializer errors. These propagate to the caller; the mutator
never raises them (a misunderstood edit degrades to a no-op instead).
"""

from __future__ import annotations


class ComposerError(Exception):
    """Base class for all kernel errors."""

    pass


class NotFoundError(ComposerError):
    """Unknown namespace, bind key, or action key."""

    pass


class SkillMissingError(ComposerError):
    """Action references a skill that is not registered."""

    pass


class FetchError(ComposerError):
    """A read collaborator failed. The original error is kept as __cause__."""

    def __init__(self, namespace: str, bind_key: str, message: str) -> None:
        super().__init__(f"Failed to fetch {namespace}:{bind_key}: {message}")
        self.namespace = namespace
        self.bind_key = bind_key


class ActionError(ComposerError):
    """A skill reported failure while executing an action."""

    def __init__(self, namespace: str, action_key: str, message: str) -> None:
        super().__init__(f"Action {namespace}:{action_key} failed: {message}")
        self.namespace = namespace
        self.action_key = action_key


class ParseError(ComposerError):
    """Persisted layout JSON is malformed or structurally invalid."""

    pass
