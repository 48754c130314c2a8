"""
Performance timing utilities for the edge solver.

Provides a decorator and a context manager for measuring the rotation sweep,
candidate ranking and loop search, with hierarchical output.
"""

import time
import functools
from typing import Optional, List, Dict, Any
from contextlib import contextmanager

from .config import RuntimeFlags


class PerformanceTimer:
    """Hierarchical performance timer (single-threaded solver)."""

    def __init__(self):
        self._stack: List[Dict[str, Any]] = []
        self._results: List[Dict[str, Any]] = []

    @property
    def results(self) -> List[Dict[str, Any]]:
        return self._results

    def clear(self):
        self._results = []

    @contextmanager
    def time_block(self, name: str):
        """Context manager for timing a code block.

        Args:
            name: Name of the code block being timed
        """
        if not RuntimeFlags.enable_performance_logging:
            yield
            return

        timing_info = {
            'name': name,
            'start': time.perf_counter(),
            'depth': len(self._stack),
            'children': []
        }
        self._stack.append(timing_info)

        try:
            yield
        finally:
            timing_info['elapsed'] = time.perf_counter() - timing_info['start']
            self._stack.pop()

            # Nested blocks hang off their parent
            if self._stack:
                self._stack[-1]['children'].append(timing_info)
            else:
                self._results.append(timing_info)

    def print_results(self):
        """Print formatted timing results with hierarchy, then clear them."""
        if not RuntimeFlags.enable_performance_logging or not self._results:
            return

        print("\n" + "=" * 80)
        print("PERFORMANCE TIMING REPORT")
        print("=" * 80)

        total_time = sum(r['elapsed'] for r in self._results)

        def print_timing(timing: Dict[str, Any], parent_time: Optional[float] = None):
            elapsed = timing['elapsed']
            indent = "  " * timing['depth']

            if parent_time:
                percentage = (elapsed / parent_time) * 100
                print(f"{indent}{timing['name']}: {elapsed:.3f}s ({percentage:.1f}%)")
            else:
                print(f"{indent}{timing['name']}: {elapsed:.3f}s")

            for child in timing['children']:
                print_timing(child, elapsed)

        for result in self._results:
            print_timing(result, total_time)

        print("-" * 80)
        print(f"TOTAL: {total_time:.3f}s")
        print("=" * 80 + "\n")

        self.clear()


# Global timer instance
_timer = PerformanceTimer()


def timed(func):
    """Decorator to time function execution when performance logging is enabled."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if not RuntimeFlags.enable_performance_logging:
            return func(*args, **kwargs)

        with _timer.time_block(f"{func.__module__}.{func.__qualname__}"):
            return func(*args, **kwargs)

    return wrapper


def print_performance_report():
    """Print the accumulated performance timing report."""
    _timer.print_results()


@contextmanager
def time_block(name: str):
    """Context manager for timing arbitrary code blocks.

    Example:
        with time_block("Rotation sweep"):
            optimizer.align_side(0)
    """
    with _timer.time_block(name):
        yield
