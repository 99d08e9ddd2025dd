import argparse
import logging

from reahl.stonebrowser.mcp.server import create_server
from reahl.stonebrowser.settings import BrowserSettings
from reahl.stonebrowser.settings import boolean_flag_from_environment


def non_negative_integer(value):
    try:
        number = int(value, 10)
    except ValueError:
        raise argparse.ArgumentTypeError('%r is not an integer.' % value)
    if number < 0:
        raise argparse.ArgumentTypeError('%r is negative.' % value)
    return number


def argument_parser():
    parser = argparse.ArgumentParser(
        description='Run the GemStone class library browser as an MCP server.'
    )
    parser.add_argument(
        '--transport',
        default='stdio',
        choices=['stdio'],
        help='MCP transport type.',
    )
    parser.add_argument(
        '--allow-mutation',
        action='store_true',
        default=boolean_flag_from_environment('STONEBROWSER_ALLOW_MUTATION'),
        help=(
            'Enable tools that change classes, categories, dictionaries '
            'or the transaction (disabled by default).'
        ),
    )
    parser.add_argument(
        '--allow-compile',
        action='store_true',
        default=boolean_flag_from_environment('STONEBROWSER_ALLOW_COMPILE'),
        help='Enable gs_compile_method (disabled by default).',
    )
    parser.add_argument(
        '--max-environment',
        type=non_negative_integer,
        default=None,
        help=(
            'Highest method environment to browse. Defaults to '
            'STONEBROWSER_MAX_ENVIRONMENT, or 0.'
        ),
    )
    parser.add_argument(
        '--log-level',
        default='WARNING',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level; DEBUG also logs every query and its result.',
    )
    return parser


def run_application(arguments=None):
    arguments = argument_parser().parse_args(arguments)
    logging.basicConfig(level=getattr(logging, arguments.log_level))
    mcp_server = create_server(
        allow_mutation=arguments.allow_mutation,
        allow_compile=arguments.allow_compile,
        settings=BrowserSettings(max_environment=arguments.max_environment),
    )
    mcp_server.run(transport=arguments.transport)


if __name__ == '__main__':
    run_application()
