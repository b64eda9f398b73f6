# notifywait/cli.py

"""
Command line interface for notifywait
"""
import sys
import argparse
import logging
from typing import List, Optional, TextIO

from notifywait import __version__
from notifywait.utils.config import (
    ConfigError,
    KNOWN_EVENTS,
    WatchConfig,
    load_config,
)
from notifywait.utils.logger import setup_logging
from notifywait.watch.monitor import WatchMonitor

logger = logging.getLogger(__name__)

PROG = "notifywait"
HELP_FLAGS = ("-?", "-h", "--help")
EXIT_USAGE = 1

# Options copied onto the configuration when given on the command line
_OVERRIDES = (
    'recursive', 'monitor', 'quiet',
    'format', 'timefmt',
    'execute', 'parameter', 'timeout',
    'poll_interval', 'quiet_period',
    'log_level', 'log_file', 'log_format',
)


class _ArgumentParser(argparse.ArgumentParser):
    """Reports argument errors as ConfigError instead of exiting"""

    def error(self, message):
        raise ConfigError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog=PROG,
        description="Wait for changes to files and report them, inotifywait style.",
        add_help=False,
    )
    parser.add_argument("paths", nargs="*", help="Files or directories to watch")
    parser.add_argument("-h", "-?", "--help", action="store_true", dest="help",
                        help="Show this help and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    parser.add_argument("-r", "--recursive", action="store_true", default=None,
                        help="Watch directories recursively")
    parser.add_argument("-m", "--monitor", action="store_true", default=None,
                        help="Keep running after the first change (default: exit)")
    parser.add_argument("-q", "--quiet", action="store_true", default=None,
                        help="Do not print the startup banner")
    parser.add_argument("-e", "--event", action="append", metavar="EVENT",
                        help=f"Events to watch, repeatable or comma separated: {', '.join(KNOWN_EVENTS)} "
                             "(default: all)")

    output = parser.add_argument_group("output")
    output.add_argument("--format", metavar="FMT",
                        help="Output format; %%e event, %%f file name, %%w directory, %%T time "
                             "(default: '%%T %%w%%f %%e')")
    output.add_argument("--timefmt", metavar="FMT", help="strftime format used for timestamps")

    exclusion = parser.add_mutually_exclusive_group()
    exclusion.add_argument("--exclude", metavar="PATTERN",
                           help="Do not report paths matching this regular expression")
    exclusion.add_argument("--excludei", metavar="PATTERN",
                           help="Like --exclude but case insensitive")

    job = parser.add_argument_group("command execution")
    job.add_argument("-x", "--execute", metavar="COMMAND", help="Command to run after each change")
    job.add_argument("-p", "--parameter", metavar="ARGS", help="Arguments passed to the command")
    job.add_argument("-t", "--timeout", type=int, metavar="SECONDS",
                     help="Seconds to wait for the command (default: 10)")

    engine = parser.add_argument_group("engine")
    engine.add_argument("--config", metavar="FILE", help="YAML or JSON configuration file")
    engine.add_argument("--polling", action="store_true", help="Use a polling observer")
    engine.add_argument("--no-stdin", action="store_true",
                        help="Do not stop when standard input is closed")
    engine.add_argument("--poll-interval", type=float, metavar="SECONDS",
                        help="Flush tick period (default: 0.1)")
    engine.add_argument("--quiet-period", type=float, metavar="SECONDS",
                        help="Idle time before a change is reported (default: 0.075)")
    engine.add_argument("--print-config", action="store_true",
                        help="Print the effective configuration as YAML and exit")

    logging_group = parser.add_argument_group("logging")
    logging_group.add_argument("--log-level", metavar="LEVEL", help="Diagnostic log level (default: WARNING)")
    logging_group.add_argument("--log-file", metavar="FILE", help="Also write diagnostics to this file")
    logging_group.add_argument("--log-format", choices=["text", "json", "color"])

    return parser


def build_config(args: argparse.Namespace) -> WatchConfig:
    """
    Merge the optional config file with command line options

    Args:
        args: Parsed arguments

    Returns:
        Configuration, not yet validated
    """
    config = load_config(args.config) if args.config else WatchConfig()

    overrides = {}
    if args.paths:
        overrides['paths'] = args.paths
    if args.event:
        overrides['events'] = args.event
    for name in _OVERRIDES:
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value

    # Command line exclusion replaces whatever the file configured
    if args.exclude is not None:
        overrides.update(exclude=args.exclude, excludei=None)
    elif args.excludei is not None:
        overrides.update(exclude=None, excludei=args.excludei)

    if args.polling:
        overrides['use_polling'] = True
    if args.no_stdin:
        overrides['watch_stdin'] = False

    config.update_from_dict(overrides)
    return config


def main(argv: Optional[List[str]] = None,
         stdout: Optional[TextIO] = None,
         stderr: Optional[TextIO] = None,
         stdin: Optional[TextIO] = None) -> int:
    """
    Entry point

    Returns:
        Process exit status
    """
    argv = sys.argv[1:] if argv is None else list(argv)
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    parser = build_parser()

    # Show usage if no args or standard "help" args are given
    if not argv or argv[0] in HELP_FLAGS:
        parser.print_help(stderr)
        return EXIT_USAGE

    try:
        args = parser.parse_args(argv)
        if args.help:
            parser.print_help(stderr)
            return EXIT_USAGE

        config = build_config(args)
        config.validate()
    except ConfigError as e:
        parser.print_usage(stderr)
        stderr.write(f"{PROG}: error: {e}\n")
        return EXIT_USAGE

    setup_logging(config.log_level, config.log_file, config.log_format, stream=stderr)

    if args.print_config:
        stdout.write(config.to_yaml())
        return 0

    monitor = WatchMonitor(config, out_stream=stdout, err_stream=stderr, stdin=stdin)
    status = monitor.run()
    logger.debug(f"Final status: {monitor.get_status()}")
    return status


def run():
    """Console script entry point"""
    sys.exit(main())
