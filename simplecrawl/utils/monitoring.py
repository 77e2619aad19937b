"""
Monitoring and metrics collection for the crawler.
"""

import time
import logging
from typing import Dict, Optional, Any, List
from dataclasses import dataclass, field

from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry
from prometheus_client import start_http_server


@dataclass
class MetricPoint:
    """Individual metric data point."""
    timestamp: float
    value: float
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass
class Metric:
    """Metric container with history."""
    name: str
    description: str
    metric_type: str  # counter, gauge, histogram
    points: List[MetricPoint] = field(default_factory=list)
    current_value: float = 0.0


class MetricsCollector:
    """Collects crawl metrics in memory and, optionally, in Prometheus."""

    MAX_POINTS = 1000

    def __init__(self, enable_prometheus: bool = False, prometheus_port: int = 8000):
        self.logger = logging.getLogger(__name__)
        self.metrics: Dict[str, Metric] = {}
        self.enable_prometheus = enable_prometheus
        self.prometheus_port = prometheus_port

        self.prometheus_registry: Optional[CollectorRegistry] = None
        self.prometheus_metrics: Dict[str, Any] = {}

        if self.enable_prometheus:
            self._setup_prometheus()

    def _setup_prometheus(self):
        """Setup Prometheus metrics on a private registry."""
        self.prometheus_registry = CollectorRegistry()

        self.prometheus_metrics = {
            'urls_fetched_total': Counter(
                'simplecrawl_urls_fetched_total',
                'Total number of URLs fetched',
                registry=self.prometheus_registry
            ),
            'http_responses_total': Counter(
                'simplecrawl_http_responses_total',
                'HTTP responses by status code',
                ['status_code'],
                registry=self.prometheus_registry
            ),
            'errors_total': Counter(
                'simplecrawl_errors_total',
                'Total number of crawl errors',
                ['error_type'],
                registry=self.prometheus_registry
            ),
            'urls_skipped_total': Counter(
                'simplecrawl_urls_skipped_total',
                'URLs rejected by the follow mode',
                ['reason'],
                registry=self.prometheus_registry
            ),
            'response_time_seconds': Histogram(
                'simplecrawl_response_time_seconds',
                'Response time for HTTP requests',
                registry=self.prometheus_registry
            ),
            'bytes_downloaded_total': Counter(
                'simplecrawl_bytes_downloaded_total',
                'Total bytes downloaded',
                registry=self.prometheus_registry
            ),
            'queue_size': Gauge(
                'simplecrawl_queue_size',
                'Number of URLs pending in the frontier',
                registry=self.prometheus_registry
            ),
            'active_requests': Gauge(
                'simplecrawl_active_requests',
                'Number of fetches in flight',
                registry=self.prometheus_registry
            ),
        }

        self.logger.info("Prometheus metrics initialized")

    def start_prometheus_server(self):
        """Start the Prometheus metrics HTTP server."""
        if not self.enable_prometheus:
            return

        try:
            start_http_server(self.prometheus_port, registry=self.prometheus_registry)
            self.logger.info(f"Prometheus metrics server started on port {self.prometheus_port}")
        except OSError as e:
            self.logger.error(f"Failed to start Prometheus server: {e}")

    def record_metric(self, name: str, value: float, labels: Optional[Dict[str, str]] = None,
                      description: str = "", metric_type: str = "gauge", delta: float = 0.0):
        """Record a metric value.

        ``delta`` is what Prometheus counters are incremented by; gauges and
        histograms receive ``value`` directly.
        """
        labels = labels or {}

        if name not in self.metrics:
            self.metrics[name] = Metric(
                name=name,
                description=description,
                metric_type=metric_type
            )

        metric = self.metrics[name]
        metric.points.append(MetricPoint(timestamp=time.time(), value=value, labels=labels))
        metric.current_value = value

        if len(metric.points) > self.MAX_POINTS:
            metric.points = metric.points[-self.MAX_POINTS:]

        if self.enable_prometheus and name in self.prometheus_metrics:
            prom_metric = self.prometheus_metrics[name]
            if labels:
                prom_metric = prom_metric.labels(**labels)

            if metric_type == 'counter':
                prom_metric.inc(delta)
            elif metric_type == 'histogram':
                prom_metric.observe(value)
            else:
                prom_metric.set(value)

    def increment_counter(self, name: str, amount: float = 1,
                          labels: Optional[Dict[str, str]] = None, description: str = ""):
        """Increment a counter metric."""
        current_value = 0
        if name in self.metrics:
            current_value = self.metrics[name].current_value

        self.record_metric(name, current_value + amount, labels, description, "counter", delta=amount)

    def set_gauge(self, name: str, value: float, labels: Optional[Dict[str, str]] = None,
                  description: str = ""):
        """Set a gauge metric value."""
        self.record_metric(name, value, labels, description, "gauge")

    def observe_histogram(self, name: str, value: float, labels: Optional[Dict[str, str]] = None,
                          description: str = ""):
        """Record a histogram observation."""
        self.record_metric(name, value, labels, description, "histogram")

    def get_metric(self, name: str) -> Optional[Metric]:
        """Get a metric by name."""
        return self.metrics.get(name)

    def get_current_values(self) -> Dict[str, float]:
        """Get current values of all metrics."""
        return {name: metric.current_value for name, metric in self.metrics.items()}


class CrawlerMonitor:
    """High-level monitoring interface for the crawler."""

    def __init__(self, metrics_collector: Optional[MetricsCollector] = None):
        self.metrics = metrics_collector or MetricsCollector()
        self.start_time = time.time()

    def record_url_fetched(self, url: str, status_code: int, response_time: float, size: int):
        """Record a completed fetch."""
        self.metrics.increment_counter('urls_fetched_total', description='URLs fetched')
        self.metrics.observe_histogram('response_time_seconds', response_time,
                                       description='HTTP response time')
        self.metrics.increment_counter('http_responses_total',
                                       labels={'status_code': str(status_code)},
                                       description='HTTP responses by status code')
        if size:
            self.metrics.increment_counter('bytes_downloaded_total', size,
                                           description='Bytes downloaded')

    def record_error(self, error_type: str):
        """Record an error event."""
        self.metrics.increment_counter('errors_total', labels={'error_type': error_type},
                                       description='Crawl errors')

    def record_url_skipped(self, url: str, reason: str):
        """Record a URL rejected by the follow mode."""
        self.metrics.increment_counter('urls_skipped_total', labels={'reason': reason},
                                       description='URLs skipped')

    def update_queue_size(self, size: int):
        self.metrics.set_gauge('queue_size', size, description='URLs in queue')

    def update_active_requests(self, count: int):
        self.metrics.set_gauge('active_requests', count, description='Fetches in flight')

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        current_values = self.metrics.get_current_values()
        runtime = time.time() - self.start_time

        return {
            'runtime_seconds': runtime,
            'metrics': current_values,
            'rates': {
                'urls_per_second': current_values.get('urls_fetched_total', 0) / runtime if runtime > 0 else 0,
                'bytes_per_second': current_values.get('bytes_downloaded_total', 0) / runtime if runtime > 0 else 0,
            }
        }


def initialize_monitoring(enable_prometheus: bool = False, prometheus_port: int = 8000) -> CrawlerMonitor:
    """Create a monitor, optionally backed by Prometheus."""
    return CrawlerMonitor(MetricsCollector(enable_prometheus, prometheus_port))
