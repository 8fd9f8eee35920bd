import pytest

from utils.monitoring import (
    ErrorTracker, HealthMonitor, PerformanceMonitor, error_tracker, get_monitoring_snapshot,
    performance_monitor, track_performance
)


class TestPerformanceMonitor:
    def setup_method(self):
        self.monitor = PerformanceMonitor()

    def test_timing_summary(self):
        self.monitor.record_timing('generate_encounter', 0.1)
        self.monitor.record_timing('generate_encounter', 0.3)
        timing = self.monitor.get_summary()['timings']['generate_encounter']
        assert timing['count'] == 2
        assert timing['average'] == pytest.approx(0.2)
        assert timing['max'] == pytest.approx(0.3)

    def test_counter_summary(self):
        self.monitor.record_counter('category_Groups')
        self.monitor.record_counter('category_Groups', 2)
        assert self.monitor.get_summary()['counters'] == {'category_Groups': 3}

    def test_get_metrics_filters_by_type(self):
        self.monitor.record_timing('a', 0.1)
        self.monitor.record_counter('b')
        assert list(self.monitor.get_metrics('timing_')) == ['timing_a']

    def test_system_stats(self):
        stats = self.monitor.get_system_stats()
        assert 'memory_percent' in stats
        assert stats['uptime'] >= 0


class TestErrorTracker:
    def test_counts_by_type(self):
        tracker = ErrorTracker()
        tracker.record_error('NoFitError', 'No creature fits per-creature budget for group')
        tracker.record_exception(ValueError('bad dice'), {'terrain': 'Swamp'})
        summary = tracker.get_error_summary()
        assert summary['total_errors'] == 2
        assert summary['error_counts'] == {'NoFitError': 1, 'ValueError': 1}
        assert tracker.get_errors_by_type('ValueError')[0]['context'] == {'terrain': 'Swamp'}


class TestHealthMonitor:
    def test_healthy_by_default(self):
        health = HealthMonitor(PerformanceMonitor(), ErrorTracker())
        health.thresholds['memory_percent'] = 101
        assert health.check_health()['status'] == 'healthy'

    def test_degraded_on_many_errors(self):
        tracker = ErrorTracker()
        for _ in range(60):
            tracker.record_error('NoFitError', 'No fit')
        health = HealthMonitor(PerformanceMonitor(), tracker).check_health()
        assert health['status'] == 'degraded'
        assert health['checks']['errors'] == 'warning'

    def test_degraded_on_slow_operation(self):
        monitor = PerformanceMonitor()
        monitor.record_timing('generate_encounter', 2.0)
        health = HealthMonitor(monitor, ErrorTracker()).check_health()
        assert health['checks']['generate_encounter'] == 'warning'


def test_track_performance_records_timing_and_errors():
    @track_performance('test_operation')
    def succeed():
        return 42

    @track_performance('test_failure')
    def fail():
        raise RuntimeError('boom')

    assert succeed() == 42
    assert 'test_operation' in performance_monitor.get_summary()['timings']
    before = len(error_tracker.get_errors_by_type('RuntimeError'))
    with pytest.raises(RuntimeError):
        fail()
    assert len(error_tracker.get_errors_by_type('RuntimeError')) == before + 1


def test_snapshot_sections():
    assert set(get_monitoring_snapshot()) == {'performance', 'errors', 'system', 'health'}
