import argparse

def get_base_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Convert podcast listening history between players")
    parser.add_argument("-e", "--env-file", help="Path to a custom .env file", default=None)
    return parser

def add_log_level_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-l", "--log-level", help="Set log level (DEBUG, INFO, WARNING, ERROR)", default=None)

def add_opml_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--opml", metavar="FILE", help="OPML file containing all the feeds to convert", required=True)

def add_player_arguments(parser: argparse.ArgumentParser, cli_name: str, name: str, in_group, out_group) -> None:
    parser.add_argument(f"--{cli_name}", metavar="FILE", help=f"the {name} save file")
    in_group.add_argument(f"--in-{cli_name}", action="store_true", help=f"Convert from {name}")
    out_group.add_argument(f"--out-{cli_name}", metavar="FILE", help=f"Convert to {name} and output to FILE")
