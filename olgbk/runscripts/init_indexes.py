#!/usr/bin/env python
'''
Script for creating the indexes for the logbook collections in Mongo.
Connection details are taken from the environment; see olgbk.context.
'''

import sys
import logging
import argparse

from olgbk import context
from olgbk.dal.indexes import create_indexes

logger = logging.getLogger(__name__)

def configureLogging(verbose):
    loglevel = logging.INFO

    if verbose:
        loglevel = logging.DEBUG

    root = logging.getLogger()
    root.setLevel(loglevel)
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(loglevel)
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    ch.setFormatter(formatter)
    root.addHandler(ch)

def main(argv=None):
    parser = argparse.ArgumentParser(description='Create the indexes for the logbook collections')
    parser.add_argument("-v", "--verbose", action='store_true', help="Turn on verbose logging")
    parser.add_argument("--database", default=context.LOGBOOK_DATABASE, help="The logbook database; defaults to %s" % context.LOGBOOK_DATABASE)
    args = parser.parse_args(argv)
    configureLogging(args.verbose)

    create_indexes(context.get_logbookclient()[args.database])
    logger.info("Done creating indexes in %s", args.database)
    return 0

if __name__ == '__main__':
    sys.exit(main())
