from prometheus_client import Counter, Gauge

INGESTION_TICKS = Counter(
    'analytics_ingestion_ticks_total',
    'Ingestion ticks by entity kind and outcome',
    ['kind', 'outcome']
)
RECORDS_STORED = Counter(
    'analytics_records_stored_total',
    'Records written to the store',
    ['kind']
)
RECORDS_SKIPPED = Counter(
    'analytics_records_skipped_total',
    'Records skipped on insert because of a duplicate identity',
    ['kind']
)
RECORDS_PURGED = Counter(
    'analytics_records_purged_total',
    'Records deleted by the retention purge',
    ['kind']
)
LAST_SUCCESS = Gauge(
    'analytics_ingestion_last_success_timestamp',
    'Epoch time of the last successful ingestion tick',
    ['kind']
)

class IngestionMetrics:
    """Records ingestion outcomes for the prometheus exporter."""

    def record_success(self, kind: str, stored: int, skipped: int, timestamp: float):
        INGESTION_TICKS.labels(kind=kind, outcome='success').inc()
        RECORDS_STORED.labels(kind=kind).inc(stored)
        if skipped:
            RECORDS_SKIPPED.labels(kind=kind).inc(skipped)
        LAST_SUCCESS.labels(kind=kind).set(timestamp)

    def record_failure(self, kind: str):
        INGESTION_TICKS.labels(kind=kind, outcome='failure').inc()

    def record_skipped_tick(self, name: str):
        INGESTION_TICKS.labels(kind=name, outcome='skipped').inc()

    def record_purge(self, kind: str, count: int):
        if count:
            RECORDS_PURGED.labels(kind=kind).inc(count)
