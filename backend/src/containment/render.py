"""
Component stack tracking for render passes.

Each rendering scope pushes its identifier on a context-local stack. When a
fault escapes a scope it is tagged with the stack that was active where it
was raised, which is what a boundary later reports as the component stack.
"""
import functools
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterator, Tuple, TypeVar

F = TypeVar('F', bound=Callable[..., Any])

_STACK_ATTR = "__component_stack__"

_component_stack: ContextVar[Tuple[str, ...]] = ContextVar("component_stack", default=())


def current_component_stack() -> Tuple[str, ...]:
    """Identifiers of the active rendering scopes, outermost first."""
    return _component_stack.get()


@contextmanager
def rendering(name: str) -> Iterator[Tuple[str, ...]]:
    """Mark a block as rendering the component ``name``."""
    stack = _component_stack.get() + (name,)
    token = _component_stack.set(stack)
    try:
        yield stack
    except Exception as e:
        # Innermost scope wins; outer scopes see the tag already set.
        if getattr(e, _STACK_ATTR, None) is None:
            try:
                setattr(e, _STACK_ATTR, stack)
            except AttributeError:
                pass
        raise
    finally:
        _component_stack.reset(token)


def component(name: str) -> Callable[[F], F]:
    """Decorator form of :func:`rendering` for render functions."""
    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with rendering(name):
                return func(*args, **kwargs)
        return wrapper  # type: ignore[return-value]
    return decorator


def fault_component_stack(error: BaseException) -> Tuple[str, ...]:
    """The stack a fault was tagged with, or an empty tuple."""
    stack = getattr(error, _STACK_ATTR, None)
    return tuple(stack) if stack else ()
