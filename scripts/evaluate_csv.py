"""Print the ABC/Pareto table for a validated delivery fact table CSV.

Usage:
    python scripts/evaluate_csv.py data/deliveries.csv --dimension 1
    python scripts/evaluate_csv.py data/deliveries.csv --dimension 0 --a-pct 0.6 --b-pct 0.25
    python scripts/evaluate_csv.py data/deliveries.csv --from 2024-01-01 --to 2024-06-30 --region North
"""

import argparse
from datetime import date

import pandas as pd

from delay_pareto.engine.dimensions import DIMENSION_TABLE, Dimension
from delay_pareto.engine.evaluation import EvaluationSession, format_pareto_table
from delay_pareto.engine.thresholds import ThresholdStore
from delay_pareto.ingestion.fact_table import ORDER_DATE, records_from_frame


def main() -> None:
    choices = ", ".join(f"{opt.order}={opt.label}" for opt in DIMENSION_TABLE)
    parser = argparse.ArgumentParser(description="ABC classification of delivery delay")
    parser.add_argument("csv", help="Validated fact table CSV")
    parser.add_argument("--dimension", type=int, default=int(Dimension.SUPPLIER), help=choices)
    parser.add_argument("--a-pct", type=float, default=None)
    parser.add_argument("--b-pct", type=float, default=None)
    parser.add_argument("--from", dest="date_from", type=date.fromisoformat, default=None)
    parser.add_argument("--to", dest="date_to", type=date.fromisoformat, default=None)
    parser.add_argument("--region", action="append", default=None, help="Keep only these regions")
    args = parser.parse_args()

    df = pd.read_csv(args.csv, parse_dates=[ORDER_DATE])
    records = records_from_frame(df)
    print(f"[evaluate] Loaded {len(records)} orders from {args.csv}")

    session = EvaluationSession(records, store=ThresholdStore(args.a_pct, args.b_pct))
    selections = {int(Dimension.REGION): args.region} if args.region else None
    result = session.evaluate(
        args.dimension,
        date_from=args.date_from,
        date_to=args.date_to,
        selections=selections,
    )
    print(format_pareto_table(result))


if __name__ == "__main__":
    main()
