"""
Quant Scanner: Main Orchestrator

- Scores every configured ticker once per cycle
- Optional one-shot mode for cron jobs and scripts
- Optional JSON dump of the latest outputs
- Graceful shutdown on SIGINT / SIGTERM
"""

import argparse
import json
import logging
import signal
import sys
import time
from datetime import datetime
from typing import Dict, List, Optional

from config import DEFAULT_INTERVAL, INTERVALS, LOG_FORMAT, LOG_LEVEL, LOGS_DIR, TICKERS, UPDATE_INTERVAL
from data_collector import DataCollector
from display import Display, print_startup_banner
from models import EngineOutput, ScanResult

logger = logging.getLogger(__name__)


def setup_logging(level: str = LOG_LEVEL):
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(LOGS_DIR / f"quant_{datetime.now().strftime('%Y%m%d')}.log"),
            logging.StreamHandler(),
        ],
    )


class QuantScanner:
    """
    Flow per iteration:
    1. Fetch history for each ticker and score it (DataCollector → QuantEngine)
    2. Render the score, forecast and explanation tables
    3. Sleep until the next cycle
    """

    def __init__(self, tickers: List[str], interval: str = DEFAULT_INTERVAL,
                 collector: Optional[DataCollector] = None, display: Optional[Display] = None):
        self.tickers = tickers
        self.interval = interval
        self.running = False

        self.data_collector = collector if collector is not None else DataCollector()
        self.display = display if display is not None else Display()
        self.results: Dict[str, ScanResult] = {}

        logger.info(f"Scanner initialized for tickers: {', '.join(tickers)} ({interval})")

    def _signal_handler(self, signum, frame):
        logger.info("Shutdown signal received")
        self.running = False

    def scan_once(self) -> Dict[str, ScanResult]:
        logger.info("Scoring tickers...")
        for ticker in self.tickers:
            try:
                output = self.data_collector.get_analysis(ticker, self.interval)
            except Exception as e:
                logger.error(f"  Failed {ticker}: {e}")
                output = None

            if output is None:
                self.results[ticker] = ScanResult(ticker=ticker, error="no data or not enough history")
                logger.warning(f"  No score for {ticker}")
                continue

            self.results[ticker] = ScanResult(ticker=ticker, output=output)
            logger.info(
                f"  {ticker}: {output.current_price:.4f} composite={output.composite_score} "
                f"{output.signal.value} regime={output.market_regime.value} "
                f"conf={output.confidence}%"
            )
        return self.results

    def start(self):
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        logger.info("Starting Quant Scanner")
        self.running = True

        print_startup_banner()
        print(f"\n  Monitoring: {', '.join(self.tickers)}")
        print(f"  Interval: {self.interval} | Update every {UPDATE_INTERVAL}s")
        print(f"  Press Ctrl+C to stop\n")

        iteration = 0
        while self.running:
            try:
                iteration += 1
                logger.info(f"=== Iteration {iteration} ===")
                self.scan_once()
                self.data_collector.engine.cache.clean()
                self._update_display(iteration)

                if self.running:
                    logger.info(f"Sleeping {UPDATE_INTERVAL}s")
                    time.sleep(UPDATE_INTERVAL)

            except KeyboardInterrupt:
                break
            except Exception as e:
                logger.error(f"Error in main loop: {e}", exc_info=True)
                time.sleep(10)

        logger.info("Shutting down scanner...")
        print("\n\n  Scanner stopped.")

    def _update_display(self, iteration: Optional[int] = None):
        try:
            self.display.clear_screen()
            self.display.show_header()
            self.render()
            if iteration is not None:
                next_str = datetime.fromtimestamp(
                    datetime.now().timestamp() + UPDATE_INTERVAL
                ).strftime("%H:%M:%S")
                print(f"{'─' * self.display.width}")
                print(f"  Iteration: {iteration} │ Next: {next_str} │ Ctrl+C to exit")
        except Exception as e:
            logger.error(f"Display error: {e}")

    def render(self):
        self.display.show_scores(self.results)
        self.display.show_forecasts(self.results)
        self.display.show_explanations(self.results)
        self.display.show_errors(self.results)

    def latest(self, ticker: str) -> Optional[EngineOutput]:
        result = self.results.get(ticker)
        return result.output if result else None

    def to_json(self) -> str:
        return json.dumps(
            {t: r.output.to_dict() for t, r in self.results.items() if r.ok},
            indent=2,
        )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Score assets with the quant engine")
    parser.add_argument("tickers", nargs="*", help="tickers in yfinance format (default: QUANT_TICKERS)")
    parser.add_argument("--interval", choices=sorted(INTERVALS), default=DEFAULT_INTERVAL)
    parser.add_argument("--once", action="store_true", help="score once and exit")
    parser.add_argument("--json", action="store_true", help="with --once, print JSON instead of tables")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    setup_logging()
    args = parse_args(argv)

    try:
        scanner = QuantScanner(tickers=args.tickers or TICKERS, interval=args.interval)
        if args.once:
            scanner.scan_once()
            if args.json:
                print(scanner.to_json())
            else:
                scanner.render()
            return
        scanner.start()
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
