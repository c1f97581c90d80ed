"""
Collection of documentation pages for classifier training data.

For each service class in the services data file, crawl the class's
documentation link and keep the resulting pages. Output is written as JSON
into an output directory, optionally in partial files while a long run is
in progress.
"""

import json
import logging
import random
from pathlib import Path
from typing import List, Optional, Union

from suggest_crawler.config import CrawlerConfig, ServicesConfig
from suggest_crawler.dynamic_crawler import DynamicCrawler
from suggest_crawler.exceptions import ConfigError, PageError
from suggest_crawler.models import ClassCrawlRecord
from suggest_crawler.static_crawler import StaticCrawler

logger = logging.getLogger(__name__)

CRAWLER_TYPES = ("dynamic", "static")


def make_crawler(
    crawler_type: str, config: Optional[CrawlerConfig] = None
) -> Union[DynamicCrawler, StaticCrawler]:
    """Create the crawler implementation for a crawler type name.

    Raises:
        ConfigError: If the type is not 'dynamic' or 'static'
    """
    if crawler_type == "dynamic":
        logger.info("preparing to perform dynamic crawl...")
        return DynamicCrawler(config)
    if crawler_type == "static":
        logger.info("preparing to perform static crawl...")
        return StaticCrawler(config)
    raise ConfigError(
        f"unrecognized crawl type: {crawler_type}. Valid types: static and dynamic"
    )


def new_run_id() -> str:
    return f"gen_run_{random.randint(1, 10000)}"


class CollectionWriter:
    """Writes partial and final collection output files."""

    def __init__(self, output_dir: Union[str, Path], run_id: str, output_freq: int = 5):
        """
        Args:
            output_dir: Directory for output files (created on first write)
            run_id: Prefix for output file names
            output_freq: Write a partial file every this many classes; 0 disables
        """
        self.output_dir = Path(output_dir)
        self.run_id = run_id
        self.output_freq = output_freq
        self.partial_paths: List[Path] = []
        self._pending: List[ClassCrawlRecord] = []

    def add(self, record: ClassCrawlRecord) -> Optional[Path]:
        """Queue a record, writing a partial file when enough have queued up."""
        if not self.output_freq:
            return None

        self._pending.append(record)
        if len(self._pending) >= self.output_freq:
            return self.flush()
        return None

    def flush(self) -> Optional[Path]:
        """Write any queued records to the next partial file."""
        if not self._pending:
            return None

        path = self.output_dir / f"{self.run_id}_part.{len(self.partial_paths)}.json"
        logger.info(f"Saving partial crawl output file: {path}")
        self._write(path, self._pending)
        self.partial_paths.append(path)
        self._pending = []
        return path

    def write_final(self, records: List[ClassCrawlRecord]) -> Path:
        path = self.output_dir / f"{self.run_id}.crawl.json"
        self._write(path, records)
        logger.info(f"Crawl output written to {path}")
        return path

    def _write(self, path: Path, records: List[ClassCrawlRecord]) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump([record.to_dict() for record in records], f, indent=2)


async def collect_class_pages(
    services: ServicesConfig,
    crawler: Union[DynamicCrawler, StaticCrawler],
    doc_limit: Optional[int] = None,
    writer: Optional[CollectionWriter] = None,
) -> List[ClassCrawlRecord]:
    """
    Crawl the documentation link of every service class.

    The crawler must already be initialized. A class whose seed page cannot
    be loaded is recorded with its error and the run continues.

    Args:
        services: Services configuration
        crawler: Initialized crawler
        doc_limit: Maximum pages to keep per class (None or 0 for no limit)
        writer: Optional writer for partial output

    Returns:
        One record per class, in configuration order
    """
    records: List[ClassCrawlRecord] = []
    total = len(services.nlc_class_info)

    for index, service in enumerate(services.nlc_class_info, start=1):
        logger.info(f"Processing class {index} of {total}: {service.class_name}")
        record = ClassCrawlRecord(
            class_name=service.class_name,
            doc_link=service.doc_link,
            doc_name=service.doc_name,
        )

        try:
            pages = await crawler.crawl(service.doc_link)
        except PageError as e:
            logger.error(f"Unable to crawl class: {service.class_name}, error: {e}")
            record.error = str(e)
        else:
            if doc_limit and len(pages) > doc_limit:
                logger.info(f"\tEnforcing doc limit of {doc_limit} per class.")
                pages = pages[:doc_limit]
            record.pages = pages
            logger.info(f"\t{len(pages)} pages collected for {service.class_name}")

        records.append(record)
        if writer is not None:
            writer.add(record)

    if writer is not None:
        writer.flush()

    return records


async def run_collection(
    services: ServicesConfig,
    crawler_type: str = "dynamic",
    config: Optional[CrawlerConfig] = None,
    doc_limit: Optional[int] = None,
    output_dir: Union[str, Path] = "output",
    output_freq: int = 5,
    run_id: Optional[str] = None,
) -> Path:
    """Run a full collection and write the final output file.

    Returns:
        Path of the final output file
    """
    run_id = run_id or new_run_id()
    logger.info(f"run ID: {run_id}")

    writer = CollectionWriter(output_dir, run_id, output_freq)
    crawler = make_crawler(crawler_type, config)

    async with crawler:
        records = await collect_class_pages(services, crawler, doc_limit, writer)
        stats = crawler.cache_stats()

    failed = sum(1 for record in records if not record.success)
    logger.info(
        f"Collection complete. classes: {len(records)} failed: {failed} "
        f"cache size: {stats.size} hits: {stats.hits} misses: {stats.misses}"
    )
    return writer.write_final(records)
