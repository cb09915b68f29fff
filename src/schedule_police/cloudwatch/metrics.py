import logging
import typing

from aws_embedded_metrics import metric_scope

_LOGGER = logging.getLogger(__name__)

MetricUnit = typing.Literal["Count", "Milliseconds", "None"]


class MetricsManager:
    """
    Collects counters during one Lambda invocation and emits them in a single
    embedded-metrics log line on flush. Repeated puts of the same name add up.
    """

    def __init__(self, namespace: str):
        self._namespace = namespace
        self._metrics: dict[str, tuple[float, MetricUnit]] = {}

    def put_metric(self, name: str, value: float, unit: MetricUnit = "Count") -> None:
        previous, _ = self._metrics.get(name, (0, unit))
        self._metrics[name] = (previous + value, unit)
        _LOGGER.info(f"Queued metric '{name}' with value {value} in namespace '{self._namespace}'")

    @metric_scope
    def flush(self, metrics):
        if not self._metrics:
            return
        metrics.set_namespace(self._namespace)
        for name, (value, unit) in self._metrics.items():
            metrics.put_metric(name, value, unit)

        _LOGGER.info(f"Flushed {len(self._metrics)} metrics to namespace '{self._namespace}'.")
        self._metrics = {}
