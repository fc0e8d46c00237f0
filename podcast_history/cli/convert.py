"""Command-line converter between podcast player save files.

Reads the podcasts listed in an OPML file, fills in their listening history
from one player's save file, and writes that history into one or more
other save files:

    podcast-history --opml feeds.opml \\
        --beyondpod backup.zip --in-beyondpod \\
        --pocketcasts pocketcasts.db --out-pocketcasts converted.db
"""

import argparse
import io
import logging
import sys
from typing import Dict, List, Mapping, Optional, Tuple, Type

from ..argparse_shared import (
    add_log_level_argument,
    add_opml_argument,
    add_player_arguments,
    get_base_parser,
)
from ..config import Config
from ..podcast.feed_parser import FeedParser, load_podcasts
from ..podcast.models import Podcast
from ..players import PLAYERS, Player

logger = logging.getLogger(__name__)


def create_parser(players: Mapping[str, Type[Player]] = PLAYERS) -> argparse.ArgumentParser:
    """Create the argument parser with a --X / --in-X / --out-X triple per player."""
    parser = get_base_parser()
    add_log_level_argument(parser)
    add_opml_argument(parser)

    in_group = parser.add_mutually_exclusive_group(required=True)
    out_group = parser.add_argument_group("outputs", "At least one output player is required")

    for cli_name, player in players.items():
        add_player_arguments(parser, cli_name, player.name, in_group, out_group)

    return parser


def resolve_players(
    parser: argparse.ArgumentParser,
    args: argparse.Namespace,
    players: Mapping[str, Type[Player]] = PLAYERS,
) -> Tuple[str, List[Tuple[str, str]]]:
    """
    Work out the input player and the output (player, path) pairs from parsed arguments.

    Exits through ``parser.error`` when no output is given or when --in-X/--out-X
    is used without the matching --X save file.

    Returns:
        tuple: The input player's cli name and a list of ``(cli name, output path)`` pairs.
    """
    input_name = None
    outputs: List[Tuple[str, str]] = []

    for cli_name in players:
        save_file = getattr(args, cli_name)
        is_input = getattr(args, f"in_{cli_name}")
        out_path = getattr(args, f"out_{cli_name}")

        if (is_input or out_path) and not save_file:
            parser.error(f"--in-{cli_name} and --out-{cli_name} require --{cli_name}")

        if is_input:
            input_name = cli_name
        if out_path:
            outputs.append((cli_name, out_path))

    if not outputs:
        parser.error("at least one --out-<player> argument is required")

    return input_name, outputs


def open_players(
    args: argparse.Namespace,
    config: Config,
    players: Mapping[str, Type[Player]] = PLAYERS,
) -> Dict[str, Player]:
    """Open every player whose save file was given on the command line."""
    opened: Dict[str, Player] = {}
    try:
        for cli_name, player_class in players.items():
            path = getattr(args, cli_name)
            if path:
                opened[cli_name] = player_class.open(path, temp_dir=config.STATE_STORE_TEMP_DIR)
    except Exception:
        for player in opened.values():
            player.close()
        raise
    return opened


def populate(player: Player, podcasts: List[Podcast]) -> List[Podcast]:
    """Fill in track history for every podcast from the input player."""
    populated = []
    for podcast in podcasts:
        logger.info(f"Populating '{podcast.title}' ({podcast.url})")
        populated.append(player.populate(podcast))
    return populated


def save_player(player: Player, podcasts: List[Podcast], out_path: str) -> None:
    """
    Save podcasts through a player and write the result to ``out_path``.

    The save file is built in memory first so a failed save never leaves a
    truncated file behind.
    """
    buffer = io.BytesIO()
    player.save(podcasts, buffer)

    with open(out_path, "wb") as out_file:
        out_file.write(buffer.getvalue())

    logger.info(f"Wrote {player.name} save file: {out_path}")


def run_conversion(
    args: argparse.Namespace,
    config: Config,
    input_name: str,
    outputs: List[Tuple[str, str]],
    players: Mapping[str, Type[Player]] = PLAYERS,
    feed_parser: Optional[FeedParser] = None,
) -> None:
    """Open the players, load the podcasts, populate from the input and save every output."""
    opened = open_players(args, config, players)

    try:
        podcasts = load_podcasts(
            args.opml, feed_parser or FeedParser(user_agent=config.FEED_USER_AGENT)
        )
        podcasts = populate(opened[input_name], podcasts)

        for cli_name, out_path in outputs:
            logger.info(f"Saving to '{cli_name}'")
            save_player(opened.pop(cli_name), podcasts, out_path)
    finally:
        # Players that were only read from, or never reached
        for player in opened.values():
            player.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)
    input_name, outputs = resolve_players(parser, args)

    config = Config(env_file=args.env_file)
    logging.basicConfig(
        level=config.log_level(args.log_level),
        format=config.LOG_FORMAT,
    )

    try:
        run_conversion(args, config, input_name, outputs)
    except Exception as e:
        logger.error(f"Conversion failed: {e}")
        raise

    return 0


if __name__ == "__main__":
    sys.exit(main())
