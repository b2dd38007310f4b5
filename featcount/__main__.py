#! /usr/bin/env python
# -*- coding: utf-8 -*-

# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

""" Main functionality of Featcount

"""
import sys
import argparse

from featcount import __version__
from .cli import count as cli_count


USAGE = ''' %(prog)s <command> [<args>]

The most commonly used commands are:
   count          Count the reads overlapping each feature of an annotation
   list-counters  List available counters

'''


def main():
    if len(sys.argv) == 1:
        empty_parser = argparse.ArgumentParser(
            description='Read counting per genomic feature',
            usage=USAGE,
        )
        empty_parser.print_help(sys.stderr)
        sys.exit(1)

    parser = argparse.ArgumentParser(
        description='Read counting per genomic feature',
    )
    parser.add_argument('--version',
        action='version',
        version=__version__,
        default=__version__,
    )

    subparser = parser.add_subparsers(help='Sub-command help', dest='subcommand')

    ''' Parser for count '''
    count_parser = subparser.add_parser('count',
        description='''Count the reads overlapping each feature of an annotation''',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    cli_count.CountOptions.add_arguments(count_parser)
    count_parser.set_defaults(func=cli_count.run)

    ''' Parser for list-counters '''
    list_counters_parser = subparser.add_parser('list-counters',
        description='''List available counters''',
    )
    list_counters_parser.set_defaults(func=cli_count.list_counters)

    args = parser.parse_args()
    args.func(args)

if __name__ == '__main__':
    main()
