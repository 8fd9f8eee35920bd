"""
Monitoring for the encounter generator: generation timings, category and
outcome counters, error tracking and a simple health check.
"""

import time
import psutil
import threading
from functools import wraps
from typing import Dict, Any, List
from collections import defaultdict, deque
from datetime import datetime
from utils.logging import logger, log_exception

class PerformanceMonitor:
    """Record operation timings and counters."""

    def __init__(self):
        self.metrics = defaultdict(lambda: deque(maxlen=1000))
        self.start_time = time.time()
        self._lock = threading.Lock()

    def record_timing(self, operation: str, duration: float):
        """Record timing for an operation."""
        with self._lock:
            self.metrics[f"timing_{operation}"].append({
                'timestamp': time.time(),
                'duration': duration
            })

    def record_counter(self, metric: str, value: int = 1):
        """Record a counter metric."""
        with self._lock:
            self.metrics[f"counter_{metric}"].append({
                'timestamp': time.time(),
                'value': value
            })

    def get_metrics(self, metric_type: str = None) -> Dict[str, Any]:
        """Get current raw metrics."""
        with self._lock:
            if metric_type:
                return {k: list(v) for k, v in self.metrics.items() if k.startswith(metric_type)}
            return {k: list(v) for k, v in self.metrics.items()}

    def get_summary(self) -> Dict[str, Any]:
        """Summarize timings (count/average/max) and counter totals."""
        with self._lock:
            summary = {'timings': {}, 'counters': {}}
            for key, entries in self.metrics.items():
                if key.startswith('timing_') and entries:
                    durations = [e['duration'] for e in entries]
                    summary['timings'][key[len('timing_'):]] = {
                        'count': len(durations),
                        'average': sum(durations) / len(durations),
                        'max': max(durations)
                    }
                elif key.startswith('counter_'):
                    summary['counters'][key[len('counter_'):]] = sum(e['value'] for e in entries)
            return summary

    def get_system_stats(self) -> Dict[str, Any]:
        """Get current process and host statistics."""
        try:
            memory = psutil.virtual_memory()
            process = psutil.Process()
            return {
                'cpu_percent': psutil.cpu_percent(interval=None),
                'memory_percent': memory.percent,
                'process_rss': process.memory_info().rss,
                'uptime': time.time() - self.start_time
            }
        except Exception as e:
            log_exception(e)
            return {'error': str(e)}

class ErrorTracker:
    """Track generation and request errors."""

    def __init__(self):
        self.errors = deque(maxlen=1000)
        self.error_counts = defaultdict(int)
        self._lock = threading.Lock()

    def record_error(self, error_type: str, message: str, context: Dict[str, Any] = None):
        """Record an error by type name, e.g. 'NoFitError'."""
        with self._lock:
            self.errors.append({
                'timestamp': datetime.now().isoformat(),
                'error_type': error_type,
                'error_message': message,
                'context': context or {}
            })
            self.error_counts[error_type] += 1

    def record_exception(self, error: Exception, context: Dict[str, Any] = None):
        self.record_error(type(error).__name__, str(error), context)

    def get_error_summary(self) -> Dict[str, Any]:
        """Get error summary statistics."""
        with self._lock:
            return {
                'total_errors': len(self.errors),
                'error_counts': dict(self.error_counts),
                'recent_errors': list(self.errors)[-10:]  # Last 10 errors
            }

    def get_errors_by_type(self, error_type: str) -> List[Dict[str, Any]]:
        """Get all errors of a specific type."""
        with self._lock:
            return [e for e in self.errors if e['error_type'] == error_type]

class HealthMonitor:
    """Derive a health status from system stats, errors and timings."""

    def __init__(self, performance_monitor: PerformanceMonitor, error_tracker: ErrorTracker):
        self.performance_monitor = performance_monitor
        self.error_tracker = error_tracker
        self.thresholds = {
            'memory_percent': 90,
            'error_count': 50,
            'response_time': 0.5  # seconds
        }

    def check_health(self) -> Dict[str, Any]:
        """Perform health check and return status."""
        health_status = {
            'status': 'healthy',
            'checks': {},
            'alerts': []
        }

        system_stats = self.performance_monitor.get_system_stats()
        if 'error' not in system_stats and system_stats['memory_percent'] > self.thresholds['memory_percent']:
            health_status['checks']['memory'] = 'warning'
            health_status['alerts'].append(f"High memory usage: {system_stats['memory_percent']}%")

        error_summary = self.error_tracker.get_error_summary()
        if error_summary['total_errors'] > self.thresholds['error_count']:
            health_status['checks']['errors'] = 'warning'
            health_status['alerts'].append(f"High error count: {error_summary['total_errors']} errors")

        for operation, timing in self.performance_monitor.get_summary()['timings'].items():
            if timing['average'] > self.thresholds['response_time']:
                health_status['checks'][operation] = 'warning'
                health_status['alerts'].append(f"Slow {operation}: {timing['average']:.2f}s average")

        if any(check == 'warning' for check in health_status['checks'].values()):
            health_status['status'] = 'degraded'
            logger.warning(f"Health degraded: {'; '.join(health_status['alerts'])}")

        return health_status

# Global monitoring instances
performance_monitor = PerformanceMonitor()
error_tracker = ErrorTracker()
health_monitor = HealthMonitor(performance_monitor, error_tracker)

def track_performance(operation: str):
    """Decorator to time a function and record any exception it raises."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
                performance_monitor.record_timing(operation, time.time() - start_time)
                return result
            except Exception as e:
                error_tracker.record_exception(e, {'operation': operation})
                raise
        return wrapper
    return decorator

def get_monitoring_snapshot() -> Dict[str, Any]:
    """Everything the metrics endpoint reports."""
    return {
        'performance': performance_monitor.get_summary(),
        'errors': error_tracker.get_error_summary(),
        'system': performance_monitor.get_system_stats(),
        'health': health_monitor.check_health()
    }
