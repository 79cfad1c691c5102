"""Result type for explicit error handling.

Fallible release operations return ``Result[T, E]`` instead of raising, so
callers decide how a failure is reported (console line, exit code, wrapped
into a release error). Exceptions stay at collaborator boundaries: the
descriptor store, SCM providers and the XML parser.

Usage:
    def release_version_of(snapshot: str) -> Result[str, str]:
        if not snapshot.endswith("-SNAPSHOT"):
            return Err(f"not a snapshot: {snapshot}")
        return Ok(snapshot.removesuffix("-SNAPSHOT"))

    result = release_version_of("1.0-SNAPSHOT")
    if is_ok(result):
        print(f"releasing {result.value}")

    match release_version_of("1.0-SNAPSHOT"):
        case Ok(version):
            print(f"releasing {version}")
        case Err(error):
            print(f"error: {error}")
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeGuard, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """A successful result holding a value.

    Attributes:
        value: The success value.
    """

    value: T

    def is_ok(self) -> bool:
        """Returns True."""
        return True

    def is_err(self) -> bool:
        """Returns False."""
        return False

    def unwrap(self) -> T:
        """Returns the contained value.

        Returns:
            The success value.
        """
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Returns the contained value.

        Args:
            default: Unused; an Ok always has a value.

        Returns:
            The success value.
        """
        return self.value

    def unwrap_err(self) -> None:
        """Raises ValueError; an Ok carries no error.

        Raises:
            ValueError: Always.
        """
        raise ValueError(f"called unwrap_err on Ok: {self.value}")

    def map(self, f: Callable[[T], U]) -> Ok[U]:
        """Applies ``f`` to the contained value.

        Args:
            f: Transformation of the value.

        Returns:
            Ok holding ``f(value)``.
        """
        return Ok(f(self.value))

    def map_err(self, f: Callable[[E], F]) -> Ok[T]:
        """Returns self; there is no error to transform."""
        return self

    def flat_map(self, f: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Chains another fallible step on the contained value.

        Args:
            f: Step taking the value and returning a Result.

        Returns:
            Whatever ``f`` returns.
        """
        return f(self.value)

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """A failed result holding an error.

    Attributes:
        error: The error value.
    """

    error: E

    def is_ok(self) -> bool:
        """Returns False."""
        return False

    def is_err(self) -> bool:
        """Returns True."""
        return True

    def unwrap(self) -> None:
        """Raises ValueError carrying the error.

        Raises:
            ValueError: Always, with the error in its message.
        """
        raise ValueError(f"called unwrap on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        """Returns ``default``.

        Args:
            default: Value used in place of the missing success value.

        Returns:
            ``default``.
        """
        return default

    def unwrap_err(self) -> E:
        """Returns the contained error.

        Returns:
            The error value.
        """
        return self.error

    def map(self, f: Callable[[T], U]) -> Err[E]:
        """Returns self; there is no value to transform."""
        return self

    def map_err(self, f: Callable[[E], F]) -> Err[F]:
        """Applies ``f`` to the contained error.

        Args:
            f: Transformation of the error, e.g. wrapping a store error
                into a ReleaseError.

        Returns:
            Err holding ``f(error)``.
        """
        return Err(f(self.error))

    def flat_map(self, f: Callable[[T], Result[U, E]]) -> Err[E]:
        """Returns self; the chained step is skipped."""
        return self

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result: TypeAlias = Union[Ok[T], Err[E]]


def is_ok(result: Result[T, E]) -> TypeGuard[Ok[T]]:
    """Type guard for Ok.

    Args:
        result: Result to check.

    Returns:
        True when ``result`` is an Ok (narrowed for type checkers).
    """
    return isinstance(result, Ok)


def is_err(result: Result[T, E]) -> TypeGuard[Err[E]]:
    """Type guard for Err.

    Args:
        result: Result to check.

    Returns:
        True when ``result`` is an Err (narrowed for type checkers).
    """
    return isinstance(result, Err)
