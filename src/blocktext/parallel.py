"""
Typed wrappers around dask.delayed used to fan out font loading.

Tasks are always computed on the threads scheduler, compute_all() returns
only once every task has finished.
"""

import logging
from typing import Callable, Generic, Iterable, ParamSpec, TypeVar

import dask
from dask.delayed import Delayed, delayed as dask_delayed

log = logging.getLogger(__name__)

P = ParamSpec('P')
R = TypeVar('R')  # result of a load or proxy task


class TypedDelayed(Delayed, Generic[R]):
    """Annotation only: a dask Delayed whose compute() yields R.

    delayed(resolver.load_noerr) is typed as returning
    TypedDelayed[FontHandle | None], so compute_all() keeps the result type.
    """

    def __init__(self) -> None:
        raise NotImplementedError("TypedDelayed is only used in annotations")

    def compute(self, **kwargs) -> R:
        raise NotImplementedError("TypedDelayed is only used in annotations")


def delayed(func: Callable[P, R], name=None, pure=False, **kwargs) \
    -> Callable[P, TypedDelayed[R]]:
    """Returns a type-aware delayed function, replaces dask.delayed.

    Tasks default to impure since loading touches the filesystem.
    """
    return dask_delayed(func, name=name, pure=pure, **kwargs)


def compute_all(tasks: Iterable[TypedDelayed[R]], num_workers: int | None = None) -> list[R]:
    """Runs tasks on a thread pool and waits for all of them."""
    tasks = list(tasks)
    if not tasks:
        return []
    log.debug(f"Computing {len(tasks)} tasks")
    kwargs = {'scheduler': 'threads'}
    if num_workers is not None:
        kwargs['num_workers'] = num_workers
    return list(dask.compute(*tasks, **kwargs))
