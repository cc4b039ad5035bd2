from __future__ import annotations

import argparse
import json
import random
import sys
from datetime import timedelta
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tradesim.core.config.settings import load_settings
from tradesim.core.ledger.schema import TradeSide
from tradesim.core.orchestration.log_setup import setup_logging
from tradesim.core.orchestration.time_utils import now_local
from tradesim.core.session.controller import SessionController
from tradesim.core.session.timers import PolledTimer
from tradesim.ui.utils.formatting import format_money, format_pct


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a headless trading session with random trades")
    parser.add_argument("--steps", type=int, default=30)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--name", default="Demo Trader")
    parser.add_argument("--trade-probability", type=float, default=0.3)
    parser.add_argument("--max-shares", type=int, default=20)
    parser.add_argument("--json", action="store_true", help="Print the final summary as JSON")
    args = parser.parse_args()

    settings = load_settings()
    setup_logging(settings.log_level)
    seed_rng = random.Random(args.seed)
    controller = SessionController(
        settings,
        timer=PolledTimer(settings.tick_interval_seconds),
        rng_factory=lambda: random.Random(seed_rng.random()),
    )
    controller.login_local(args.name)

    started = now_local()
    accepted = 0
    declined = 0
    for index in range(max(0, args.steps)):
        controller.step(started + timedelta(seconds=settings.tick_interval_seconds * (index + 1)))
        if seed_rng.random() >= args.trade_probability:
            continue
        instrument = seed_rng.choice(controller.instruments())
        side = TradeSide.BUY if seed_rng.random() < 0.6 else TradeSide.SELL
        result = controller.trade(instrument.ticker, seed_rng.randint(1, max(1, args.max_shares)), side)
        if result.accepted:
            accepted += 1
        else:
            declined += 1
        print(
            f"{index + 1:>4} | {side.value:<4} {result.shares:>3} {result.ticker:<10} "
            f"@ {format_money(result.price, currency=settings.currency)} | "
            f"{'ok' if result.accepted else result.reason.value}"
        )

    summary = controller.summary()
    controller.logout()

    if args.json:
        payload = {
            "steps": args.steps,
            "accepted": accepted,
            "declined": declined,
            "cash": str(summary.cash),
            "market_value": str(summary.market_value),
            "total_value": str(summary.total_value),
            "total_pl": str(summary.total_pl),
            "holdings": [
                {"ticker": row.ticker, "shares": row.shares, "average_cost": str(row.average_cost)}
                for row in summary.rows
            ],
        }
        print(json.dumps(payload, ensure_ascii=True, indent=2, sort_keys=True))
        return

    currency = settings.currency
    print(f"trades | accepted={accepted} declined={declined}")
    print(f"cash={format_money(summary.cash, currency=currency)} | holdings={len(summary.rows)}")
    print(
        f"total={format_money(summary.total_value, currency=currency)} | "
        f"pl={format_money(summary.total_pl, currency=currency)} ({format_pct(summary.total_pl_percent)})"
    )


if __name__ == "__main__":
    main()
