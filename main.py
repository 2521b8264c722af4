import asyncio
import argparse
import glob
import json
import logging
import os
import re
import sys
from typing import List
from core.aggregator import summarize
from core.engine import DEFAULT_JOBS, MAX_JOBS, MIN_JOBS, Engine, read_url_list
from core.errors import EmptyBatchError
from core.record_builder import record_to_json
from core.report import render_text_report
from fetch.http_client import normalize_url
from models.site import SiteRecord, utc_now

SUMMARY_JSON = "summary.json"
SUMMARY_REPORT = "summary_report.txt"
BATCH_DIR_PREFIX = "tech_stack_batch_"

logger = logging.getLogger(__name__)


def url_to_filename(url: str) -> str:
    """File stem for a site record: host and path with unsafe characters replaced."""
    stem = re.sub(r'^https?://', '', url, flags=re.IGNORECASE).rstrip("/")
    return re.sub(r'[^a-zA-Z0-9.-]', '_', stem)


def unique_output_path(output_dir: str, stem: str) -> str:
    """Path for ``stem``.json, appending _2, _3, ... if the name is taken."""
    path = os.path.join(output_dir, f"{stem}.json")
    counter = 2
    while os.path.exists(path):
        path = os.path.join(output_dir, f"{stem}_{counter}.json")
        counter += 1
    return path


def write_record(record: SiteRecord, output_dir: str) -> str:
    os.makedirs(output_dir, exist_ok=True)
    path = unique_output_path(output_dir, url_to_filename(record.url))
    with open(path, "w", encoding="utf-8") as f:
        f.write(record_to_json(record))
        f.write("\n")
    return path


def load_records(batch_dir: str) -> List[SiteRecord]:
    """Load every site record in a batch directory, skipping the summary."""
    records = []
    for path in sorted(glob.glob(os.path.join(batch_dir, "*.json"))):
        if os.path.basename(path) == SUMMARY_JSON:
            continue
        try:
            with open(path, "r", encoding="utf-8") as f:
                records.append(SiteRecord.from_dict(json.load(f)))
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            logger.warning(f"Skipping unreadable record {path}: {e}")
    return records


def write_summary(records: List[SiteRecord], batch_dir: str, batch_id: str) -> None:
    summary = summarize(records, batch_id=batch_id)
    with open(os.path.join(batch_dir, SUMMARY_JSON), "w", encoding="utf-8") as f:
        json.dump(summary.to_dict(), f, indent=2, ensure_ascii=False)
        f.write("\n")
    with open(os.path.join(batch_dir, SUMMARY_REPORT), "w", encoding="utf-8") as f:
        f.write(render_text_report(summary))
    logger.info(f"Summary JSON: {os.path.join(batch_dir, SUMMARY_JSON)}")
    logger.info(f"Summary report: {os.path.join(batch_dir, SUMMARY_REPORT)}")


def main():
    parser = argparse.ArgumentParser(description="Website tech stack analyzer")
    parser.add_argument("url", nargs="?", help="Target URL (e.g., https://example.com)")
    parser.add_argument("-b", "--batch", type=str, help="Analyze URLs from a file (one per line, # for comments)")
    parser.add_argument("-j", "--jobs", type=int, default=DEFAULT_JOBS, help=f"Number of parallel jobs in batch mode (default: {DEFAULT_JOBS}, max: {MAX_JOBS})")
    parser.add_argument("-o", "--output-dir", type=str, help="Directory for JSON output (default: stdout for a single URL, current dir for batches)")
    parser.add_argument("--summarize", type=str, metavar="BATCH_DIR", help="Summarize an existing directory of site records and exit")
    parser.add_argument("--text", action="store_true", help="With --summarize, print the text report instead of JSON")
    parser.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging verbosity level (default: INFO)")
    args = parser.parse_args()

    # Configure logging
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, args.log_level),
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if args.summarize:
        if not os.path.isdir(args.summarize):
            logger.error(f"Directory not found: {args.summarize}")
            sys.exit(1)
        records = load_records(args.summarize)
        try:
            summary = summarize(records, batch_id=os.path.basename(os.path.normpath(args.summarize)).replace(BATCH_DIR_PREFIX, ""))
        except EmptyBatchError as e:
            logger.error(str(e))
            sys.exit(1)
        if args.text:
            print(render_text_report(summary), end="")
        else:
            print(json.dumps(summary.to_dict(), indent=2, ensure_ascii=False))
        return

    if not args.batch and not args.url:
        parser.error("a URL or --batch <file> is required")
    if not MIN_JOBS <= args.jobs <= MAX_JOBS:
        parser.error(f"--jobs must be a number between {MIN_JOBS} and {MAX_JOBS}")

    if args.batch:
        if not os.path.isfile(args.batch):
            logger.error(f"Batch file not found: {args.batch}")
            sys.exit(1)
        urls = [normalize_url(u) for u in read_url_list(args.batch)]
        if not urls:
            logger.error(f"No URLs found in {args.batch}")
            sys.exit(1)

        batch_id = utc_now().strftime("%Y%m%d_%H%M%S")
        batch_dir = os.path.join(args.output_dir or ".", f"{BATCH_DIR_PREFIX}{batch_id}")
        logger.info(f"Batch ID: {batch_id}, input: {args.batch}, output: {batch_dir}/")
        logger.info(f"Processing {len(urls)} URLs with {args.jobs} parallel jobs")

        async def run_batch():
            engine = Engine()
            return await engine.analyze_batch(urls, jobs=args.jobs)

        records = asyncio.run(run_batch())
        for record in records:
            path = write_record(record, batch_dir)
            logger.debug(f"Wrote {path}")
        failed = sum(1 for r in records if r.fetch_failed)
        logger.info(f"Batch complete: {len(records) - failed} analyzed, {failed} degraded")
        write_summary(records, batch_dir, batch_id)
        return

    url = normalize_url(args.url)
    logger.info(f"Analyzing tech stack for: {url}")

    async def run():
        engine = Engine()
        return await engine.analyze_url(url)

    record = asyncio.run(run())
    if args.output_dir:
        path = write_record(record, args.output_dir)
        logger.info(f"Results saved to: {path}")
    else:
        print(record_to_json(record))


if __name__ == "__main__":
    main()
