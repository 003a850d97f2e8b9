"""
Async utility functions for concurrent operations.

Blocking I/O (outbound HTTP for flow nodes) runs in a shared thread pool so
the event loop only suspends while a request is in flight.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Any

logger = logging.getLogger(__name__)

# Global thread pool for node I/O
_io_thread_pool = None
_IO_POOL_SIZE = 4


def get_io_thread_pool() -> ThreadPoolExecutor:
    """
    Get or create the global node I/O thread pool.

    Returns:
        ThreadPoolExecutor configured for blocking node I/O
    """
    global _io_thread_pool
    if _io_thread_pool is None:
        _io_thread_pool = ThreadPoolExecutor(
            max_workers=_IO_POOL_SIZE,
            thread_name_prefix="node_io"
        )
        logger.info("Initialized node I/O thread pool with %d workers", _IO_POOL_SIZE)
    return _io_thread_pool


async def run_in_thread(func: Callable, *args, **kwargs) -> Any:
    """
    Run a blocking function in the I/O thread pool.

    Args:
        func: Blocking function to execute
        *args: Positional arguments for the function
        **kwargs: Keyword arguments for the function

    Returns:
        Result from the function execution
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        get_io_thread_pool(),
        lambda: func(*args, **kwargs)
    )


async def gather_with_concurrency(n: int, *tasks):
    """
    Run multiple async tasks with a concurrency limit.

    Args:
        n: Maximum number of concurrent tasks
        *tasks: Async tasks/coroutines to execute

    Returns:
        List of results in the same order as input tasks
    """
    semaphore = asyncio.Semaphore(n)

    async def sem_task(task):
        async with semaphore:
            return await task

    return await asyncio.gather(*(sem_task(task) for task in tasks))


def shutdown_thread_pools():
    """
    Shutdown all thread pools gracefully.

    Should be called on application shutdown.
    """
    global _io_thread_pool
    if _io_thread_pool:
        logger.info("Shutting down node I/O thread pool...")
        _io_thread_pool.shutdown(wait=True)
        _io_thread_pool = None
