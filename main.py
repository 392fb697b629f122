"""
Main entry point for cryptowire
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from cryptowire.aggregators.rss_engine import RSSEngine
from cryptowire.clients.coingecko import CoinGeckoClient
from cryptowire.clients.request_scheduler import RequestScheduler
from cryptowire.services.fundraising_service import FundraisingService
from cryptowire.services.news_service import NewsService
from cryptowire.services.trending_service import TrendingService
from cryptowire.storage.key_value_cache import create_cache
from cryptowire.utils.config import Config
from cryptowire.utils.exceptions import IngestionError, RateLimitError
from cryptowire.utils.http_client import close_http_client
from cryptowire.utils.logger import logger, setup_logging


class CryptoWire:
    """Wires the engine, the API client and the services from one Config"""

    def __init__(self, config_path: Optional[str] = None):
        self.config = Config(config_path)
        self.cache = create_cache(self.config.cache)

        self.engine = RSSEngine(self.config.feeds, cache=self.cache)
        self.scheduler = RequestScheduler(self.config.api)
        self.coingecko = CoinGeckoClient(self.scheduler, self.config.api)

        self.news = NewsService(self.config, engine=self.engine, cache=self.cache)
        self.fundraising = FundraisingService(self.config, engine=self.engine, cache=self.cache)
        self.trending = TrendingService(self.config, client=self.coingecko, cache=self.cache)

    async def run(self, command: str, force: bool = False, chains: Optional[List[str]] = None) -> dict:
        if command == "news":
            result = await self.news.fetch(force=force)
        elif command == "fundraising":
            result = await self.fundraising.fetch(force=force, chains=chains)
        elif command == "trending":
            result = await self.trending.fetch(force=force)
        else:
            raise ValueError(f"Unknown command: {command}")

        logger.info(
            f"{command}: {len(result.data)} items"
            + (f" (cached, age {result.cache_age}ms)" if result.from_cache else "")
        )
        return result.model_dump()

    def metrics(self) -> dict:
        """
        API scheduler counters for this instance.

        Counters live in memory, so this is only meaningful from a long-lived
        process that has already made requests through ``self.scheduler``.
        """
        return self.scheduler.get_performance_metrics()


async def main(command: str, force: bool = False, chains: Optional[List[str]] = None,
               config_path: Optional[str] = None) -> int:
    """Main entry point"""
    app = CryptoWire(config_path)
    try:
        output = await app.run(command, force=force, chains=chains)
    except RateLimitError as e:
        logger.error(f"Rate limited, retry after {e.retry_after_seconds}s: {e}")
        return 2
    except IngestionError as e:
        logger.error(f"{command} failed: {e}")
        return 1
    finally:
        await close_http_client()

    print(json.dumps(output, indent=2, default=str))
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="cryptowire - crypto news, fundraising and trending data with caching"
    )
    parser.add_argument(
        "command",
        choices=["news", "fundraising", "trending"],
        help="Data set to fetch",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Bypass the fresh cache and fetch live",
    )
    parser.add_argument(
        "--chains",
        nargs="+",
        help="Fundraising chain filter (e.g., --chains SOL ETH_L2s)",
    )
    parser.add_argument(
        "--config",
        help="YAML file overriding the feed source lists",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (defaults to LOG_LEVEL from .env)",
    )

    args = parser.parse_args()

    bootstrap = Config(args.config)
    setup_logging(args.log_level or bootstrap.logging.level, bootstrap.logging.file)

    sys.exit(asyncio.run(main(args.command, force=args.force, chains=args.chains, config_path=args.config)))
