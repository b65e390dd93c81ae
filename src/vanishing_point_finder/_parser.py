import argparse
import logging
import logging.handlers
import shlex
import sys
from ._estimator import SolverBackend


def add_edge_detection(g):
    g.add_argument('--canny-low', type=float, default=250)
    g.add_argument('--canny-high', type=float, default=500)
    g.add_argument('--contour-thickness', type=int, default=2,
                   help='Width in pixels of drawn contours')
    g.add_argument('--erode-iterations', type=int, default=2,
                   help='Thinning of drawn contours, reduces the number of duplicate lines')


def add_line_detection(g):
    """
    Adds the tuning knobs of the probabilistic Hough transform to a ArgumentParser.
    """
    g.add_argument('--rho', type=float, default=1.0,
                   help='Pixel resolution of the accumulator')
    g.add_argument('--theta-deg', type=float, default=1.0,
                   help='Angle resolution of the accumulator in degrees')
    g.add_argument('--hough-threshold', type=int, default=80,
                   help='Minimum number of votes to consider a line')
    g.add_argument('--min-line-length', type=float, default=100,
                   help='Minimum line length in pixels')
    g.add_argument('--max-line-gap', type=float, default=20,
                   help='Maximum gap along a single line in pixels')


def add_estimation(g):
    g.add_argument('--backend', type=SolverBackend, choices=list(SolverBackend), default=SolverBackend.numpy,
                   help='Library used for the SVD based least-squares solution')
    g.add_argument('--drop-degenerate', default=False, action='store_true',
                   help='Ignore line segments of zero length. By default, such a segment counts as a '
                        'vertical line through its single point.')


def add_logging(g):
    """
    Adds verbose, debug, and syslog arguments to a ArgumentParser.

    Parameters
    ----------
    g : argparse.ArgumentParser or argparse._ArgumentGroup

    """
    g.add_argument('-d', '--debug', action="store_const", dest="loglevel", const=logging.DEBUG,
                   help="Print lots of debugging statements",
                   default=logging.WARNING)
    g.add_argument('-v', '--verbose', action="store_const", dest="loglevel", const=logging.INFO,
                   help="Be verbose")
    g.add_argument('--syslog', action='store_true', default=False,
                   help='If given, logging goes to local syslog facility instead of stderr')


def setup_logging(logger, syslog=False, loglevel=logging.WARNING):
    """
    Set a logger to log to syslog or stderr with a given `loglevel`.

    stdout is left to the result of the estimation.

    Parameters
    ----------
    logger : logging.Logger
    syslog : bool
    loglevel : int
    """
    if syslog:
        handler = logging.handlers.SysLogHandler(address='/dev/log')
        formatter = logging.Formatter('%(message)s')
    else:
        handler = logging.StreamHandler(sys.stderr)
        # noinspection SpellCheckingInspection
        formatter = logging.Formatter('%(asctime)s %(name)s %(levelname)s - %(message)s')
    handler.setFormatter(formatter)
    logger.setLevel(loglevel)
    logger.addHandler(handler)


class LoadFromFile(argparse.Action):
    """
    Action for argparse to read parameters from a file.

    Only lines starting with a '-' as first non-whitespace character are processed, so comments and
    blank lines can be used freely.
    """

    # noinspection PyShadowingNames
    def __call__(self, parser, namespace, values, option_string=None):
        with values as f:
            for line in f:
                line = line.strip()
                if line.startswith('-'):
                    # use shlex.split instead of line.split to preserve quoting of arguments containing spaces
                    parser.parse_args(shlex.split(line), namespace)
