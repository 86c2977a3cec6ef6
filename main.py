from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable

from crawler.config import configure, get_settings
from crawler.engine import Engine
from crawler.fetchers import CurlCffiFetcher, Fetcher, RequestsFetcher
from crawler.metrics import MetricsCollector
from crawler.spider import load_spider
from crawler.storage import ItemSink, JsonlItemSink, MemoryItemSink, MemoryRequestQueue


def _fetcher_factory(transport: str, timeout: float) -> Callable[[], Fetcher]:
    if transport == "curl_cffi":
        return lambda: CurlCffiFetcher(timeout=timeout)
    return lambda: RequestsFetcher(timeout=timeout)


def run_spider(
    spider_path: str,
    workers: int,
    output: str | None,
    transport: str,
    idle_secs: float,
    timeout: float | None,
) -> int:
    spider = load_spider(spider_path)
    settings = get_settings()
    metrics = MetricsCollector()
    sink: ItemSink = JsonlItemSink(output) if output else MemoryItemSink()
    engine = Engine(
        MemoryRequestQueue(),
        sink,
        _fetcher_factory(transport, settings.fetch_timeout),
        metrics=metrics,
    )

    engine.start_spider(spider, workers=workers)
    try:
        finished = engine.wait_until_idle(spider.name, idle_secs=idle_secs, timeout=timeout)
    except KeyboardInterrupt:
        finished = False
    finally:
        engine.stop_all(wait=True)
        sink.close()

    snap = metrics.snapshot(window_secs=10 ** 9)
    print(
        f"DONE: spider={spider.name} finished={finished} success={snap.success_count} "
        f"fetch_failures={snap.fetch_failure_count} parse_failures={snap.parse_failure_count} "
        f"dispatch_failures={snap.dispatch_failure_count}"
    )
    return 0 if finished else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a spider until its request queue drains")
    parser.add_argument("spider", help="Spider class as 'package.module:ClassName'")

    parser.add_argument("--workers", type=int, default=1, help="Number of workers for the spider")
    parser.add_argument("--max-retries", type=int, default=3, help="Retries allowed for failed fetches")
    parser.add_argument("--follow-redirect", action="store_true", help="Follow redirects for discovered requests")
    parser.add_argument("--proxy", default=None, help="Proxy URL for discovered requests")
    parser.add_argument("--base-backoff-ms", type=int, default=300, help="Base idle delay in milliseconds")
    parser.add_argument("--max-backoff-ms", type=int, default=None, help="Cap for the idle delay (default: uncapped)")
    parser.add_argument("--fetch-timeout", type=float, default=20.0, help="HTTP timeout in seconds")
    parser.add_argument("--transport", choices=("requests", "curl_cffi"), default="requests")

    parser.add_argument("--output", default=None, help="Output JSONL file path for items")
    parser.add_argument("--idle-secs", type=float, default=5.0, help="Stop after the spider is idle this long")
    parser.add_argument("--timeout", type=float, default=None, help="Give up after this many seconds")
    parser.add_argument("--log-level", default="INFO", help="Logging level")

    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    configure(
        max_retries=args.max_retries,
        follow_redirect=args.follow_redirect,
        proxy=args.proxy,
        base_backoff_ms=args.base_backoff_ms,
        max_backoff_ms=args.max_backoff_ms,
        fetch_timeout=args.fetch_timeout,
    )

    sys.exit(
        run_spider(
            spider_path=args.spider,
            workers=args.workers,
            output=args.output,
            transport=args.transport,
            idle_secs=args.idle_secs,
            timeout=args.timeout,
        )
    )


if __name__ == "__main__":
    main()
