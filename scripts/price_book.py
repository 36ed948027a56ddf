#!/usr/bin/env python3
"""Batch-price a book of options through the fixed-point pipeline.

Usage
-----
    python scripts/price_book.py --input book.csv --output prices.csv
    python scripts/price_book.py --input book.csv --output prices.json --cdf lookup

Input CSV format
----------------
    id,S0,K,T,r,sigma,kind
    1,100,110,0.5,0.05,0.20,call
    2,100,95,1.0,0.05,0.25,put

Output
------
    CSV or JSON with columns: id, price, ref_price, abs_error, d1, d2, nd1,
    nd2, ticks, error
"""

from __future__ import annotations
import argparse
import csv
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from fixpricer.core import PipelineConfig, PricingRequest
from fixpricer.normal_cdf import MODES, STRATEGIES
from fixpricer.validation import cross_validate

logger = logging.getLogger("price_book")


def _price_row(row: dict, config: PipelineConfig) -> dict:
    """Price a single book row and return result dict."""
    request = PricingRequest.from_floats(
        float(row["S0"]), float(row["K"]), float(row["T"]),
        float(row["r"]), float(row["sigma"]), row["kind"], fmt=config.fmt,
    )
    cv = cross_validate(request, config)
    result = {"id": row.get("id", ""), "price": None, "ref_price": cv["ref_price"]}
    if not cv["valid"]:
        result["error"] = "divider error"
        return result
    result["price"] = cv["price"]
    result["abs_error"] = cv["abs_error"]
    for key in ("d1", "d2", "nd1", "nd2", "ticks"):
        result[key] = cv[key]
    return result


def main():
    parser = argparse.ArgumentParser(
        description="Batch-price an options book on the fixed-point pipeline."
    )
    parser.add_argument("--input", required=True, help="Path to book CSV")
    parser.add_argument("--output", required=True, help="Output path (.csv or .json)")
    parser.add_argument("--cdf", choices=sorted(STRATEGIES), default="rational")
    parser.add_argument("--mode", choices=MODES, default="parallel")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    config = PipelineConfig(cdf_strategy=args.cdf, cdf_mode=args.mode)

    with open(args.input, newline="") as f:
        rows = list(csv.DictReader(f))

    logger.info(f"Pricing {len(rows)} positions...")

    results = []
    for i, row in enumerate(rows):
        try:
            results.append(_price_row(row, config))
        except (KeyError, ValueError) as e:
            logger.error(f"Row {i} (id={row.get('id', '?')}): {e}")
            results.append({"id": row.get("id", ""), "price": None, "error": str(e)})

    output_path = Path(args.output)
    if output_path.suffix == ".json":
        with open(output_path, "w") as f:
            json.dump(results, f, indent=2, default=str)
    else:
        if not results:
            logger.info("No results to write.")
            return
        fieldnames = list(results[0].keys())
        for r in results:
            for k in r:
                if k not in fieldnames:
                    fieldnames.append(k)
        with open(output_path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
            writer.writeheader()
            writer.writerows(results)

    priced = [r for r in results if r.get("price") is not None]
    logger.info(f"Results written to {args.output}")
    logger.info(f"  Priced: {len(priced)}  |  Failed: {len(results) - len(priced)}")


if __name__ == "__main__":
    main()
