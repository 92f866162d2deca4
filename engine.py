import argparse
import logging
from typing import Dict

from app.services.map_code import tiles_to_map_code
from mapgen.generator import ConfigurationError, GenerationConfig, GenerationReport, generate
from mapgen.grid import MAP_SIZES


# ========== ARGUMENTS ==========
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate a tactical shooter map and print its map code.")
    parser.add_argument("--size", choices=sorted(MAP_SIZES), default="3v3", help="map size preset")
    parser.add_argument("--rows", type=int, help="override the preset row count")
    parser.add_argument("--cols", type=int, help="override the preset column count")
    parser.add_argument("--wall", type=float, default=10, help="wall density percent")
    parser.add_argument("--water", type=float, default=5, help="water density percent")
    parser.add_argument("--grass", type=float, default=10, help="bush density percent")
    parser.add_argument("--mirror-vertical", action="store_true")
    parser.add_argument("--mirror-horizontal", action="store_true")
    parser.add_argument("--mirror-diagonal", action="store_true")
    parser.add_argument("--seed", type=int)
    patterns = parser.add_mutually_exclusive_group()
    patterns.add_argument("--patterns", dest="use_patterns", action="store_true", default=None,
                          help="always run the structured wall patterns")
    patterns.add_argument("--no-patterns", dest="use_patterns", action="store_false",
                          help="never run the structured wall patterns")
    parser.add_argument("-v", "--verbose", action="store_true", help="log generation progress")
    return parser


def config_from_args(args) -> GenerationConfig:
    rows, cols = MAP_SIZES[args.size]
    return GenerationConfig(
        rows=args.rows or rows,
        cols=args.cols or cols,
        wall_density_pct=args.wall,
        water_density_pct=args.water,
        grass_density_pct=args.grass,
        mirror_vertical=args.mirror_vertical,
        mirror_horizontal=args.mirror_horizontal,
        mirror_diagonal=args.mirror_diagonal,
        seed=args.seed,
        use_patterns=args.use_patterns,
    )


# ========== OUTPUT ==========
def summarize(report: GenerationReport) -> Dict[str, object]:
    return {
        "seed": report.seed,
        "counts": report.counts,
        "structures": len(report.structures),
        "violations": report.violations,
        "symmetry fixes": report.symmetry_violations,
        "repairs": report.repairs,
        "merges": report.merges,
        "shortfall": {k: v["shortfall"] for k, v in report.targets.items()},
    }


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")
    try:
        grid, report = generate(config_from_args(args))
    except ConfigurationError as e:
        print(f"Invalid configuration: {e}")
        return 2

    print(tiles_to_map_code(grid.to_list()))
    print()
    for key, value in summarize(report).items():
        print(f"{key}: {value}")
    return 0 if report.passed else 1


if __name__ == "__main__":
    raise SystemExit(main())
