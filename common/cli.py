import argparse, logging
from typing import Callable, Tuple, Optional
from common.config import load_config, Config

def add_config_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to YAML config file")

def add_variant_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--variant", default=None, choices=["corners", "rect_min_depth"],
                        help="Pipeline variant preset (overrides the config file's `variant`)")

def add_log_level_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ERROR)")

def parse_args_with_config(build_parser: Callable[[], argparse.ArgumentParser],
                           defaults_from_cfg: Callable[[Config], dict],
                           argv: Optional[list] = None) -> Tuple[argparse.Namespace, Config]:
    """
    1. Build a parser based on the passed build_parser function
    2. Load the config file (and variant preset) named by --config / --variant
    3. Use the values picked by defaults_from_cfg as parser defaults, so explicit flags still win
    """
    p = build_parser()
    known = p.parse_known_args(argv)[0]
    cfg = load_config(known.config, getattr(known, "variant", None))
    p.set_defaults(**defaults_from_cfg(cfg))
    args = p.parse_args(argv)
    return args, cfg

def setup_logging(log_level: str) -> None:
    logging.basicConfig(level=getattr(logging, log_level.upper(), logging.INFO),
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
