import argparse
import logging
import sys

from .clock import run
from .core import OptionType, PipelineConfig, PricingRequest
from .d1d2 import D1D2Engine
from .divider import DividerEngine
from .exponential import ExpEngine
from .fixed import FixedFormat
from .logarithm import LogEngine
from .normal_cdf import MODES, NormalCdfEngine, STRATEGIES
from .pipeline import PricingPipeline
from .sqrt import SqrtEngine
from .validation import cdf_accuracy, cross_validate


def _kind(s: str):
    try:
        return OptionType.parse(s)
    except ValueError:
        raise argparse.ArgumentTypeError("kind must be 'call' or 'put'") from None


def _fmt(args) -> FixedFormat:
    return FixedFormat(width=args.width)


def _config(args) -> PipelineConfig:
    return PipelineConfig(fmt=_fmt(args), cdf_strategy=args.cdf, cdf_mode=args.mode)


def _show(fmt: FixedFormat, raw: int) -> str:
    return f"{fmt.to_float(raw):.6f}  (raw {raw})"


def add_market(parser: argparse.ArgumentParser):
    parser.add_argument("--S0", type=float, required=True)
    parser.add_argument("--K", type=float, required=True)
    parser.add_argument("--T", type=float, required=True, help="years")
    parser.add_argument("--r", type=float, required=True, help="cont. risk-free")
    parser.add_argument("--sigma", type=float, required=True)


def add_cdf(parser: argparse.ArgumentParser):
    parser.add_argument("--cdf", choices=sorted(STRATEGIES), default="rational",
                        help="normal CDF strategy")
    parser.add_argument("--mode", choices=MODES, default="parallel",
                        help="evaluate N(d1), N(d2) on two engines or one")


def _request(args, kind=OptionType.CALL) -> PricingRequest:
    return PricingRequest.from_floats(args.S0, args.K, args.T, args.r, args.sigma,
                                      kind, fmt=_fmt(args))


def cmd_price(args):
    config = _config(args)
    pipeline = PricingPipeline(config)
    res = run(pipeline, _request(args, args.kind), max_ticks=config.max_ticks)
    fmt = config.fmt
    if not res.valid:
        print(f"error: divide_by_zero={res.divide_by_zero} overflow={res.overflow}")
        return 1
    print(f"{fmt.to_float(res.value):.6f}")
    if args.stages:
        for label in ("d1", "d2", "nd1", "nd2", "discount"):
            print(f"  {label:<8} {_show(fmt, getattr(res, label))}")
        print(f"  ticks    {pipeline.cycles}")
    return 0


def cmd_d1d2(args):
    fmt = _fmt(args)
    res = run(D1D2Engine(fmt), *_request(args).operands())
    if not res.valid:
        print(f"error: divide_by_zero={res.divide_by_zero} overflow={res.overflow}")
        return 1
    print(f"d1 {_show(fmt, res.d1)}")
    print(f"d2 {_show(fmt, res.d2)}")
    return 0


def cmd_div(args):
    fmt = _fmt(args)
    res = run(DividerEngine(fmt), fmt.from_float(args.a), fmt.from_float(args.b))
    if not res.valid:
        print(f"error: divide_by_zero={res.divide_by_zero} overflow={res.overflow}")
        return 1
    print(_show(fmt, res.value))
    return 0


def _unary(engine_cls):
    def cmd(args):
        fmt = _fmt(args)
        engine = engine_cls(fmt, args.cdf) if engine_cls is NormalCdfEngine else engine_cls(fmt)
        print(_show(fmt, run(engine, fmt.from_float(args.x)).value))
        return 0
    return cmd


def cmd_validate(args):
    report = cdf_accuracy(args.cdf, fmt=_fmt(args))
    status = "ok" if report["within_tolerance"] else "FAIL"
    print(f"cdf[{args.cdf}]  max_err {report['max_error']:.2e}  "
          f"tol {report['tolerance']:.1e}  {status}")
    for kind in (OptionType.CALL, OptionType.PUT):
        req = PricingRequest.from_floats(100.0, 100.0, 1.0, 0.05, 0.2, kind, fmt=_fmt(args))
        cv = cross_validate(req, _config(args))
        print(f"{kind.value:<5} fixed {cv['price']:.4f}  float {cv['ref_price']:.4f}  "
              f"abs_err {cv['abs_error']:.2e}  ticks {cv['ticks']}")
    return 0 if report["within_tolerance"] else 1


def main(argv=None):
    p = argparse.ArgumentParser(prog="fixpricer",
                                description="Fixed-point Black-Scholes engine simulator")
    p.add_argument("-v", "--verbose", action="count", default=0,
                   help="-v for INFO, -vv for DEBUG engine traces")
    p.add_argument("--width", type=int, default=32, help="word width in bits")
    sub = p.add_subparsers(dest="cmd", required=True)

    # Full pipeline
    p_price = sub.add_parser("price", help="Black-Scholes price through the pipeline")
    add_market(p_price)
    add_cdf(p_price)
    p_price.add_argument("--kind", type=_kind, default=OptionType.CALL, help="call|put")
    p_price.add_argument("--stages", action="store_true", help="print intermediates")
    p_price.set_defaults(func=cmd_price)

    p_d = sub.add_parser("d1d2", help="d1 and d2 only")
    add_market(p_d)
    p_d.set_defaults(func=cmd_d1d2)

    # Single engines
    p_div = sub.add_parser("div", help="a / b on the divider")
    p_div.add_argument("a", type=float)
    p_div.add_argument("b", type=float)
    p_div.set_defaults(func=cmd_div)

    for name, engine_cls, help_text in (
        ("sqrt", SqrtEngine, "square root"),
        ("log", LogEngine, "natural logarithm"),
        ("exp", ExpEngine, "e**-x"),
        ("cdf", NormalCdfEngine, "standard normal CDF"),
    ):
        p_one = sub.add_parser(name, help=help_text)
        p_one.add_argument("x", type=float)
        if engine_cls is NormalCdfEngine:
            add_cdf(p_one)
        p_one.set_defaults(func=_unary(engine_cls))

    p_val = sub.add_parser("validate", help="accuracy report against float references")
    add_cdf(p_val)
    p_val.set_defaults(func=cmd_validate)

    args = p.parse_args(argv)
    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
