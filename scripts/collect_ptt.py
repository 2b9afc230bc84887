#!/usr/bin/env python3
"""PTT 股票版情緒彙整 CLI (dashboard 不啟動時的單次執行).

Usage:
    python scripts/collect_ptt.py
    python scripts/collect_ptt.py --pages 1 --per-page 3 --json
    python scripts/collect_ptt.py --url https://www.ptt.cc/bbs/Stock/M.1700000000.A.123.html
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from taiwan_pulse.domain.config import get_config
from taiwan_pulse.domain.errors import InvalidURLError, PageFetchError
from taiwan_pulse.infra.crawlers.fetcher import PageFetcher
from taiwan_pulse.services.forum.aggregator import PTTAggregator
from taiwan_pulse.services.sentiment.classifier import SentimentClassifier

ROOT = Path(__file__).resolve().parent.parent


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="taiwan-pulse PTT 情緒彙整")
    parser.add_argument("--pages", type=int, default=None, help="巡覽頁數 (預設: PTT_MAX_PAGES)")
    parser.add_argument(
        "--per-page",
        type=int,
        default=None,
        help="每頁分析篇數 (預設: PTT_MAX_POSTS_PER_PAGE)",
    )
    parser.add_argument("--url", default=None, help="只分析單篇文章")
    parser.add_argument("--json", action="store_true", help="JSON 輸出")
    parser.add_argument("-v", "--verbose", action="store_true", help="DEBUG 日誌")
    return parser.parse_args()


async def run(args: argparse.Namespace) -> int:
    config = get_config()
    overrides = {}
    if args.pages is not None:
        overrides["max_pages"] = args.pages
    if args.per_page is not None:
        overrides["max_posts_per_page"] = args.per_page
    ptt_config = config.ptt.model_copy(update=overrides)

    fetcher = PageFetcher(timeout=ptt_config.request_timeout)
    aggregator = PTTAggregator(fetcher, SentimentClassifier(), ptt_config)
    try:
        if args.url:
            try:
                report = await aggregator.analyze_url(args.url)
            except (InvalidURLError, PageFetchError) as e:
                print(f"ERROR: {e}")
                return 1
            if args.json:
                print(json.dumps(report.model_dump(mode="json"), ensure_ascii=False, indent=2))
            else:
                print(f"{report.title}\n  {report.sentiment.value}: {report.reason}")
                for op in report.opinions:
                    print(f"  - [{op.type.value}] {op.content}")
            return 0

        posts = await aggregator.collect()
    finally:
        await fetcher.aclose()

    if args.json:
        data = [p.model_dump(mode="json", by_alias=True) for p in posts]
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return 0

    print(f"{'分類':<6} {'推文':>4} {'代號':<6} {'情緒':<8} 標題")
    print("-" * 72)
    for p in posts:
        print(f"{p.category.value:<6} {p.push_count:>4} {p.stock_id or '-':<6} {p.sentiment.value:<8} {p.title}")
        print(f"{'':<28}{p.reason}")
    print(f"\n共 {len(posts)} 篇")
    return 0


def load_env(root: Path = ROOT) -> None:
    """.env.local → .env (已存在的環境變數優先)."""
    load_dotenv(root / ".env.local")
    load_dotenv(root / ".env")


def main() -> None:
    load_env()

    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
