"""Entry point for running the sample adventure."""

import argparse

from taleforge.game import DEMO_WORLD, run


def run_cli() -> None:
    parser = argparse.ArgumentParser(description="Play a taleforge world.")
    parser.add_argument("world", nargs="?", default=str(DEMO_WORLD), help="YAML world file")
    parser.add_argument(
        "--save",
        metavar="FILE",
        default=None,
        help="Resume from FILE if it exists and write the session there on exit",
    )
    parser.add_argument("--debug", action="store_true", help="Trace state changes to STDERR")
    args = parser.parse_args()
    run(args.world, save_path=args.save, debug=args.debug)


if __name__ == "__main__":
    run_cli()
