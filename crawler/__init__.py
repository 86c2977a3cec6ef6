"""Crawler work-cycle engine.

Workers pop requests from a queue, fetch them, hand responses to a spider's
parse routine and feed the discovered requests and items back into storage.

Key modules:
    models   -- Request, ParsedItem, CycleResult, MetricsSnapshot dataclasses
    errors   -- FetchFailure, ParseFailure, DispatchFailure
    config   -- process-wide CrawlerSettings (retries, redirects, proxy, backoff)
    backoff  -- IdleBackoff for empty-queue slow-down
    retry    -- RetryPolicy for failed fetches
    fetchers -- Fetcher, RequestsFetcher, CurlCffiFetcher
    storage  -- RequestQueue / ItemSink interfaces and in-memory / JSONL backends
    spider   -- Spider base class and load_spider()
    worker   -- Worker, the per-spider work cycle
    engine   -- Engine for running worker pools
    metrics  -- MetricsCollector for cycle statistics
"""
