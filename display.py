"""
Terminal Display Module

- Factor score table with composite, signal and regime per ticker
- Forecast table: direction, probability, continuation/reversal, S/R, target
- One-line explanation per ticker
- Same box drawing as the rest of the runner output
"""

import logging
import os
from datetime import datetime
from typing import Dict

from config import TERMINAL_WIDTH
from models import EngineOutput, ForecastDirection, MarketRegime, ScanResult, Signal

logger = logging.getLogger(__name__)

GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
GRAY = "\033[90m"
RESET = "\033[0m"

SIGNAL_COLORS = {Signal.BUY: GREEN, Signal.SELL: RED, Signal.HOLD: YELLOW}
REGIME_COLORS = {MarketRegime.BULL: GREEN, MarketRegime.BEAR: RED, MarketRegime.SIDEWAYS: GRAY}


class Display:
    def __init__(self, width: int = TERMINAL_WIDTH):
        self.width = width

    def clear_screen(self):
        os.system("clear" if os.name == "posix" else "cls")

    @staticmethod
    def _fc(amount: float) -> str:
        """Format price; sub-dollar assets keep four decimals."""
        if amount is None:
            return "-"
        return f"${amount:,.4f}" if abs(amount) < 10 else f"${amount:,.2f}"

    def _box_top(self, title: str):
        w = self.width
        print(f"┌{'─' * (w - 2)}┐")
        print(f"│{title:^{w - 2}}│")
        print(f"├{'─' * (w - 2)}┤")

    def _box_bottom(self):
        print(f"└{'─' * (self.width - 2)}┘")
        print()

    def show_header(self):
        w = self.width
        print("=" * w)
        print(f"{'QUANT SCORING ENGINE':^{w}}")
        print(f"{'Trend · Momentum · Volatility · Volume · Risk · Sentiment':^{w}}")
        print("=" * w)
        print(f"  Last Updated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        print("=" * w)
        print()

    def show_scores(self, results: Dict[str, ScanResult]):
        outputs = {t: r.output for t, r in results.items() if r.ok}
        if not outputs:
            print("  No scores available yet...")
            return

        self._box_top("FACTOR SCORES")
        print(
            f"│ {'Ticker':9s} │ {'Price':>12s} │ {'Trend':>5s} │ {'Mom':>5s} │ "
            f"{'Vol':>5s} │ {'Volu':>5s} │ {'Risk':>5s} │ {'Sent':>5s} │ "
            f"{'Score':>5s} │ {'Signal':6s} │ {'Regime':8s} │ {'Confidence':17s} │"
        )
        print(f"├{'─' * (self.width - 2)}┤")

        for ticker, out in outputs.items():
            s = out.scores
            sig_color = SIGNAL_COLORS.get(out.signal, RESET)
            reg_color = REGIME_COLORS.get(out.market_regime, RESET)
            tag = "*" if out.is_stablecoin else " "
            print(
                f"│ {ticker:8s}{tag} │ {self._fc(out.current_price):>12s} │ "
                f"{s.trend:>5d} │ {s.momentum:>5d} │ {s.volatility:>5d} │ "
                f"{s.volume:>5d} │ {s.risk:>5d} │ {s.sentiment:>5.0f} │ "
                f"{sig_color}{out.composite_score:>5d}{RESET} │ "
                f"{sig_color}{out.signal.value:6s}{RESET} │ "
                f"{reg_color}{out.market_regime.value:8s}{RESET} │ "
                f"{self._confidence_bar(out.confidence)} {out.confidence:>3d}% │"
            )

        self._box_bottom()
        if any(o.is_stablecoin for o in outputs.values()):
            print("  * stablecoin: composite pinned to 50, signal HOLD\n")

    def show_forecasts(self, results: Dict[str, ScanResult]):
        outputs = {t: r.output for t, r in results.items() if r.ok}
        if not outputs:
            return

        self._box_top("SHORT-HORIZON FORECAST")
        print(
            f"│ {'Ticker':9s} │ {'Dir':8s} │ {'Prob':>5s} │ {'Cont':>5s} │ {'Rev':>5s} │ "
            f"{'Support':>12s} │ {'Resistance':>12s} │ {'Target':>12s} │ {'Hurst':>5s} │ {'RSI':>5s} │"
        )
        print(f"├{'─' * (self.width - 2)}┤")

        for ticker, out in outputs.items():
            f = out.forecast
            print(
                f"│ {ticker:9s} │ {self._direction(f.direction)} │ {f.probability:>4d}% │ "
                f"{f.trend_continuation:>5d} │ {f.trend_reversal:>5d} │ "
                f"{self._fc(f.support):>12s} │ {self._fc(f.resistance):>12s} │ "
                f"{self._fc(f.price_target):>12s} │ "
                f"{out.metrics.trend.hurst_exponent:>5.2f} │ {out.metrics.momentum.rsi:>5.1f} │"
            )

        self._box_bottom()

    def show_explanations(self, results: Dict[str, ScanResult]):
        outputs = {t: r.output for t, r in results.items() if r.ok}
        if not outputs:
            return
        self._box_top("WHY")
        for ticker, out in outputs.items():
            self._print_wrapped(f"│  {ticker}: {out.explanation}", self.width)
        self._box_bottom()

    def show_errors(self, results: Dict[str, ScanResult]):
        failed = {t: r for t, r in results.items() if not r.ok}
        if not failed:
            return
        for ticker, result in failed.items():
            print(f"  {RED}✗ {ticker}{RESET}: {result.error or 'no data'}")
        print()

    def _print_wrapped(self, text: str, width: int):
        words = text.split()
        line = ""
        for word in words:
            if len(line) + len(word) + 1 > width - 3:
                print(f"{line:<{width - 1}}│")
                line = "│  " + word + " "
            else:
                line += word + " " if line else "│  " + word + " "
        if line:
            print(f"{line:<{width - 1}}│")

    @staticmethod
    def _confidence_bar(confidence: int) -> str:
        filled = max(0, min(10, confidence // 10))
        return f"[{'█' * filled}{'░' * (10 - filled)}]"

    @staticmethod
    def _direction(direction: ForecastDirection) -> str:
        if direction is ForecastDirection.UP:
            return f"{GREEN}▲ UP    {RESET}"
        if direction is ForecastDirection.DOWN:
            return f"{RED}▼ DOWN  {RESET}"
        return f"{GRAY}● FLAT  {RESET}"


def print_startup_banner():
    banner = """
╔═══════════════════════════════════════════════════════════════════════════════╗
║                                                                               ║
║                          QUANT SCORING ENGINE                                 ║
║                                                                               ║
║    • Regression slope, Hurst exponent and MACD for trend                      ║
║    • Z-score, Sharpe, Sortino, RSI and ROC for momentum                       ║
║    • Close-to-close, Parkinson and Garman-Klass volatility                    ║
║    • Volume z-score, Money Flow Index, price/volume confirmation              ║
║    • Beta, downside deviation, max drawdown and historical VaR                ║
║    • Composite score → BUY / SELL / HOLD, regime and forecast                 ║
║                                                                               ║
╚═══════════════════════════════════════════════════════════════════════════════╝
    """
    print(banner)
