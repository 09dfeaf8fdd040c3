"""Stack identity parsing.

A process run represents either the root stack (``"dev"``) or one substack
of it (``"dev.build"``). The identity is fixed once at process start and
decides which dispatch mode the run takes.

Only the first ``.`` separates the two components; anything after it belongs
to the substack name. No escaping is supported.

Tags:
    identity, stack, substack, parsing
"""

from __future__ import annotations

from dataclasses import dataclass

from substack.core.errors import InvalidStackIdentityError

SEPARATOR = "."


@dataclass(frozen=True, slots=True)
class StackIdentity:
    """Composite ``(stack, substack)`` key for one process run.

    ``substack`` is ``None`` for the root stack.

    Example::

        >>> StackIdentity.parse("dev.build")
        StackIdentity(stack='dev', substack='build')
        >>> StackIdentity.parse("dev").is_root
        True
        >>> str(StackIdentity("dev").child("deploy"))
        'dev.deploy'
    """

    stack: str
    substack: str | None = None

    def __post_init__(self) -> None:
        if not self.stack:
            raise InvalidStackIdentityError(str(self), "stack name is empty")
        if self.substack is not None and not self.substack:
            raise InvalidStackIdentityError(str(self), "substack name is empty")

    @classmethod
    def parse(cls, text: str) -> StackIdentity:
        """Split ``text`` on the first separator into stack and substack."""
        text = text.strip()
        if not text:
            raise InvalidStackIdentityError(text, "identity is empty")
        stack, sep, substack = text.partition(SEPARATOR)
        if not stack:
            raise InvalidStackIdentityError(text, "stack name is empty")
        if sep and not substack:
            raise InvalidStackIdentityError(text, "substack name is empty")
        return cls(stack=stack, substack=substack or None)

    @property
    def is_root(self) -> bool:
        return self.substack is None

    @property
    def root(self) -> StackIdentity:
        """Identity of the parent stack."""
        return StackIdentity(self.stack)

    def child(self, substack: str) -> StackIdentity:
        """Identity of ``substack`` under this identity's stack."""
        return StackIdentity(self.stack, substack)

    def __str__(self) -> str:
        if self.substack is None:
            return self.stack
        return f"{self.stack}{SEPARATOR}{self.substack}"
