"""
Prometheus metrics for the portal API.
"""
import time
from functools import wraps

from prometheus_client import Counter, Histogram


class MetricsRegistry:
    """
    Central metrics registry for CarePortal.

    Provides typed access to all application metrics.
    """

    def __init__(self):
        self._setup_metrics()

    def _create_counter(self, name, description, labels=None):
        return Counter(name, description, labels or [])

    def _create_histogram(self, name, description, labels=None, buckets=None):
        if buckets:
            return Histogram(name, description, labels or [], buckets=buckets)
        return Histogram(name, description, labels or [])

    def _setup_metrics(self):
        """Setup all application metrics."""

        # ===================================================================
        # HTTP Metrics
        # ===================================================================
        self.exceptions_total = self._create_counter(
            'careportal_exceptions_total',
            'Total exceptions',
            ['exception_type', 'location']
        )

        # ===================================================================
        # Report Metrics
        # ===================================================================
        self.report_uploads_total = self._create_counter(
            'careportal_report_uploads_total',
            'Patient report uploads',
            ['report_type', 'result']
        )

        self.report_deletes_total = self._create_counter(
            'careportal_report_deletes_total',
            'Patient report soft deletes',
            ['result']  # success, locked, forbidden
        )

        self.reports_locked_total = self._create_counter(
            'careportal_reports_locked_total',
            'Reports locked after a prescription'
        )

        self.signed_url_failures_total = self._create_counter(
            'careportal_signed_url_failures_total',
            'Presigned URL resolution failures',
            ['bucket']
        )

        # ===================================================================
        # Prescription Metrics
        # ===================================================================
        self.prescriptions_saved_total = self._create_counter(
            'careportal_prescriptions_saved_total',
            'Prescription save attempts',
            ['result']  # success, partial, validation_error, failure
        )

        # ===================================================================
        # AI Summary Metrics
        # ===================================================================
        self.ai_summary_requests_total = self._create_counter(
            'careportal_ai_summary_requests_total',
            'AI summary webhook calls',
            ['result']  # success, empty, http_error, failure
        )

        self.ai_summary_duration_seconds = self._create_histogram(
            'careportal_ai_summary_duration_seconds',
            'AI summary webhook round trip',
            buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0]
        )

        self.report_chat_requests_total = self._create_counter(
            'careportal_report_chat_requests_total',
            'Report chat webhook calls',
            ['result']
        )

        self.report_chat_duration_seconds = self._create_histogram(
            'careportal_report_chat_duration_seconds',
            'Report chat webhook round trip',
            buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0]
        )

    def track_duration(self, histogram_metric):
        """
        Decorator to track function duration.

        Usage:
            @metrics.track_duration(metrics.ai_summary_duration_seconds)
            def call_summary_webhook(payload):
                ...
        """
        def decorator(func):
            @wraps(func)
            def wrapper(*args, **kwargs):
                start_time = time.time()
                try:
                    return func(*args, **kwargs)
                finally:
                    histogram_metric.observe(time.time() - start_time)
            return wrapper
        return decorator


# Global metrics instance
metrics = MetricsRegistry()
