#!/usr/bin/env python
"""
Market Data Provider Demo Script

This script demonstrates the market data workflow:
1. Build discount curves and an FX rate matrix
2. Assemble an immutable market data provider
3. Query discount factors, FX rates and fixings
4. Derive bumped and shocked scenarios without touching the base snapshot

Usage:
    python run_demo.py [--output-dir OUTPUT_DIR] [--verbose]
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

import pandas as pd

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ratesmarket import (
    Curve,
    DayCount,
    FixingSeries,
    FxIndex,
    FxRateMatrix,
    MarketDataError,
    MarketDataProvider,
)
from ratesmarket.dates import DateUtils
from ratesmarket.vol import ParameterMetadata, SimpleStrike


logger = logging.getLogger("run_demo")

VALUATION_DATE = date(2011, 11, 10)
DSC_TIMES = [0.0, 0.5, 1.0, 2.0, 5.0]
DSC_RATES = {
    "USD": [0.0100, 0.0120, 0.0120, 0.0140, 0.0140],
    "EUR": [0.0150, 0.0125, 0.0150, 0.0175, 0.0150],
    "GBP": [0.0160, 0.0135, 0.0160, 0.0185, 0.0160],
    "KRW": [0.0350, 0.0325, 0.0350, 0.0375, 0.0350],
}
REPORT_TENORS = ["1M", "6M", "1Y", "2Y", "5Y", "10Y"]


def build_provider(valuation_date: date) -> MarketDataProvider:
    """Build the four-currency reference market."""
    print("\n" + "="*60)
    print("Building Market Data")
    print("="*60)

    fx = (
        FxRateMatrix.builder()
        .add_rate("EUR", "USD", 1.40)
        .add_rate("KRW", "USD", 1.0 / 1111.11)
        .add_rate("GBP", "USD", 1.50)
        .build()
    )

    builder = MarketDataProvider.builder(valuation_date).day_count(DayCount.ACT_360)
    for ccy, rates in DSC_RATES.items():
        curve = Curve(f"{ccy} Dsc", DSC_TIMES, rates, day_count=DayCount.ACT_360)
        builder.discount_curve(ccy, curve)
        print(f"  Added: {curve.name:<8s} {len(rates)} nodes, "
              f"{min(rates)*100:.2f}% - {max(rates)*100:.2f}%")

    usd_krw = FxIndex(name="USD/KRW", base="USD", counter="KRW", fixing_lag_days=2)
    provider = builder.fx_matrix(fx).time_series(usd_krw, FixingSeries.empty()).build()

    print(f"\nCurves: {', '.join(provider.currencies)}")
    print(f"FX currencies: {', '.join(provider.fx_currencies)}")
    return provider


def discount_factor_table(provider: MarketDataProvider) -> pd.DataFrame:
    """Discount factors per currency at standard tenors."""
    rows = []
    for tenor in REPORT_TENORS:
        d = DateUtils.add_tenor(provider.valuation_date, tenor)
        row = {"tenor": tenor, "date": d}
        for ccy in provider.currencies:
            row[ccy] = provider.discount_factor(ccy, d)
        rows.append(row)
    return pd.DataFrame(rows).set_index("tenor")


def show_discount_factors(provider: MarketDataProvider) -> None:
    print("\n" + "="*60)
    print("Discount Factors")
    print("="*60)
    with pd.option_context("display.float_format", "{:.6f}".format):
        print(discount_factor_table(provider))


def show_fx(provider: MarketDataProvider) -> None:
    print("\n" + "="*60)
    print("FX Rates (row = from, column = to)")
    print("="*60)
    with pd.option_context("display.float_format", "{:.6f}".format, "display.width", 120):
        print(provider.fx_matrix.rates_table())

    amount = 1_000_000
    print(f"\n  {amount:,.0f} EUR = {provider.convert(amount, 'EUR', 'GBP'):,.2f} GBP")
    print(f"  {amount:,.0f} EUR = {provider.convert(amount, 'EUR', 'KRW'):,.0f} KRW")


def show_scenarios(provider: MarketDataProvider) -> None:
    """Bump a curve and shock a rate; the base provider stays unchanged."""
    print("\n" + "="*60)
    print("Scenarios")
    print("="*60)

    maturity = DateUtils.add_tenor(provider.valuation_date, "2Y")
    bumped = provider.bump_curve("USD", 10)
    base_df = provider.discount_factor("USD", maturity)
    bumped_df = bumped.discount_factor("USD", maturity)
    print(f"  USD 2Y DF base:        {base_df:.8f}")
    print(f"  USD 2Y DF +10bp:       {bumped_df:.8f}  ({(bumped_df - base_df)*1e4:+.4f} x 1e-4)")

    shocked = provider.with_fx_rate("EUR", "USD", 1.40 * 1.05)
    print(f"  EUR/GBP base:          {provider.fx_rate('EUR', 'GBP'):.6f}")
    print(f"  EUR/GBP EUR/USD +5%:   {shocked.fx_rate('EUR', 'GBP'):.6f}")

    cross = provider.with_fx_rate("EUR", "GBP", 0.95)
    print(f"  GBP/USD EUR/GBP 0.95:  {cross.fx_rate('GBP', 'USD'):.6f}")

    try:
        provider.with_fx_rate("EUR", "GBP", -1.0)
    except MarketDataError as e:
        print(f"  Rejected shock:        {e}")


def show_metadata() -> None:
    print("\n" + "="*60)
    print("Volatility Node Labels")
    print("="*60)
    for period in ("6M", "1Y"):
        for strike in (0.01, 0.02):
            print(f"  {ParameterMetadata.of(period, SimpleStrike(strike)).label}")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Market Data Provider Demo")
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Write discount factor and FX tables as CSV to this directory"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log market data construction at DEBUG level",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    print("="*60)
    print("MARKET DATA PROVIDER DEMO")
    print(f"Valuation Date: {VALUATION_DATE}")
    print("="*60)

    provider = build_provider(VALUATION_DATE)
    show_discount_factors(provider)
    show_fx(provider)
    show_scenarios(provider)
    show_metadata()

    if args.output_dir:
        output_dir = Path(args.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        discount_factor_table(provider).to_csv(output_dir / "discount_factors.csv")
        provider.fx_matrix.rates_table().to_csv(output_dir / "fx_rates.csv")
        logger.info("Wrote tables to %s", output_dir)
        print(f"\nTables written to {output_dir}")

    print("\n" + "="*60)
    print("DEMO COMPLETE")
    print("="*60)


if __name__ == "__main__":
    main()
