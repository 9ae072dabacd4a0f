"""Thread single-flight helper.

Used to coordinate concurrent requests for the same key so only one thread
performs the work, while others wait on the same Future.
"""

from __future__ import annotations

from concurrent.futures import Future
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable
    import threading

K = TypeVar("K")
T = TypeVar("T")


def singleflight(
    key: K,
    *,
    lock: threading.Lock,
    inflight: dict[K, Future[T]],
    work: Callable[[], T],
) -> T:
    """Run *work* once per key at a time.

    - If a call for *key* is in flight, waits for it and shares its outcome
      (result or exception).
    - Otherwise, registers a Future and runs *work* as the single creator.
    """
    with lock:
        fut = inflight.get(key)
        if fut is None:
            fut = Future()
            inflight[key] = fut
            creator = True
        else:
            creator = False

    if not creator:
        return fut.result()

    try:
        value = work()
    except BaseException as e:
        fut.set_exception(e)
        raise
    else:
        fut.set_result(value)
        return value
    finally:
        with lock:
            inflight.pop(key, None)
