"""
Utility functions for the deferred sort adapter

This module provides helpers for measuring sort runs, probing laziness, and
running declarative sort requests.
"""

import time
import gc
import os
import tracemalloc
import logging
from typing import List, Dict, Any, Iterable

import psutil

from models import SortKeySpec, SortRequest, SortResult, PerformanceInfo
from sortby import SortBy, sort_by

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# Global performance tracking
_performance_metrics = {
    "operations": [],
    "total_time_ms": 0.0,
    "total_memory_mb": 0.0,
    "operation_count": 0
}


def _rss_mb() -> float:
    return psutil.Process(os.getpid()).memory_info().rss / 1024 / 1024


def _record(performance_info: Dict[str, Any]) -> None:
    _performance_metrics["operations"].append(performance_info)
    _performance_metrics["total_time_ms"] += performance_info["execution_time_ms"]
    _performance_metrics["total_memory_mb"] += performance_info["memory_usage_mb"]
    _performance_metrics["operation_count"] += 1


def measure_performance(operation_name: str, func, *args, **kwargs) -> Dict[str, Any]:
    """Measure a function call with time and memory tracking"""

    tracemalloc.start()
    gc.collect()
    rss_before = _rss_mb()
    start_time = time.perf_counter()

    try:
        result = func(*args, **kwargs)

        execution_time_ms = (time.perf_counter() - start_time) * 1000
        _, peak = tracemalloc.get_traced_memory()

        performance_info = {
            "operation": operation_name,
            "execution_time_ms": execution_time_ms,
            "memory_usage_mb": peak / 1024 / 1024,
            "rss_delta_mb": _rss_mb() - rss_before,
            "success": True,
            "result_size": len(result) if hasattr(result, "__len__") else None,
            "timestamp": time.time()
        }
        _record(performance_info)
        return {**performance_info, "result": result}

    except Exception as e:
        execution_time_ms = (time.perf_counter() - start_time) * 1000
        _, peak = tracemalloc.get_traced_memory()

        _record({
            "operation": operation_name,
            "execution_time_ms": execution_time_ms,
            "memory_usage_mb": peak / 1024 / 1024,
            "success": False,
            "error": str(e),
            "timestamp": time.time()
        })
        logger.error(f"Error in {operation_name} after {execution_time_ms:.2f}ms: {e}")
        raise

    finally:
        tracemalloc.stop()


def get_performance_summary() -> Dict[str, Any]:
    """Get summary of all performance metrics"""
    count = _performance_metrics["operation_count"]
    if count == 0:
        return {
            "total_operations": 0,
            "total_time_ms": 0.0,
            "total_memory_mb": 0.0,
            "avg_time_ms": 0.0,
            "avg_memory_mb": 0.0
        }

    return {
        "total_operations": count,
        "total_time_ms": _performance_metrics["total_time_ms"],
        "total_memory_mb": _performance_metrics["total_memory_mb"],
        "avg_time_ms": _performance_metrics["total_time_ms"] / count,
        "avg_memory_mb": _performance_metrics["total_memory_mb"] / count
    }


def clear_performance_metrics():
    """Clear all performance metrics"""
    global _performance_metrics
    _performance_metrics = {
        "operations": [],
        "total_time_ms": 0.0,
        "total_memory_mb": 0.0,
        "operation_count": 0
    }


class CountingKey:
    """Key function wrapper that records how often, and when, it was called"""

    def __init__(self, key_fn):
        self.key_fn = key_fn
        self.calls: List[float] = []

    @property
    def count(self) -> int:
        return len(self.calls)

    def __call__(self, item):
        self.calls.append(time.perf_counter())
        return self.key_fn(item)


def validate_lazy_evaluation(adapter: SortBy) -> bool:
    """True while the adapter has not read or sorted its source"""
    return not adapter.staged


def build_adapter(source: Iterable[Any], specs: List[SortKeySpec], wrap=None) -> SortBy:
    """Chain one adapter key per spec, primary first; `wrap` decorates each key fn"""
    if not specs:
        raise ValueError("At least one sort key is required")

    def key_for(spec):
        fn = spec.key_fn()
        return wrap(fn) if wrap else fn

    primary, *tie_breaks = specs
    adapter = sort_by(source, key_for(primary), primary.ascending)
    for spec in tie_breaks:
        adapter = adapter.then_sort_by(key_for(spec), spec.ascending)
    return adapter


def process_sort_request(payload: Dict[str, Any]) -> SortResult:
    """Validate and run a declarative sort request"""
    request = SortRequest.model_validate(payload)

    counters: List[CountingKey] = []

    def counted(fn):
        counter = CountingKey(fn)
        counters.append(counter)
        return counter

    adapter = build_adapter(request.items, request.keys, wrap=counted)
    fields = ",".join(spec.field for spec in request.keys)
    info = measure_performance(f"sort_by_{fields}", adapter.to_list)

    performance = PerformanceInfo(
        operation=info["operation"],
        execution_time_ms=info["execution_time_ms"],
        memory_usage_mb=info["memory_usage_mb"],
        rss_delta_mb=info["rss_delta_mb"],
        input_size=len(request.items),
        output_size=info["result_size"],
        key_calls=sum(counter.count for counter in counters)
    )
    logger.info(
        f"Sorted {performance.input_size} items by {fields} "
        f"in {performance.execution_time_ms:.2f}ms ({performance.key_calls} key calls)"
    )
    return SortResult(items=info["result"], performance=performance)
