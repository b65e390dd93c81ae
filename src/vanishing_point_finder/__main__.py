import argparse
import logging
import os
import sys
from ._estimator import EstimationError
from ._vanishing_point_finder import ImageLoadError, main
from vanishing_point_finder._parser import (add_edge_detection, add_estimation, add_line_detection, add_logging,
                                            setup_logging, LoadFromFile)
logger = logging.getLogger('vanishing_point_finder')


def setup_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog='vanishing_point_finder',
                                description='Estimate the vanishing point of the straight edges in an image.')

    p.add_argument('--settings-filename', type=open, action=LoadFromFile,
                   help='Read parameters from a file')

    # logging
    g = p.add_argument_group(title='Logging')
    add_logging(g)

    # parameters for obtaining the image
    g = p.add_argument_group(title='Image source')
    g.add_argument('source', type=str, nargs='?', default='wheel.jpg',
                   help='Filename of the image, or an URL starting with file:// or http(s)://, '
                        'e.g. http://camera.private.lan:8000/snapshot.cgi')
    g.add_argument('--username', type=str, default=None,
                   help='Username used to download the image')
    g.add_argument('--password', type=str, default=None,
                   help='Password used to download the image. '
                        'Using this in the CLI exposes your password to all users '
                        '(visible with programs like `ps` or `top`). '
                        'Better read it via the --settings-filename argument for a file with restrictive '
                        'read-permissions or provide it via the environment variable '
                        'VANISHING_POINT_FINDER_IMAGE_PASSWORD')
    g.add_argument('--timeout', type=float, default=5.0,
                   help='Timeout in seconds for downloading the image')
    g.add_argument('--width', type=int, default=800,
                   help='The image is resized to this width before processing')
    g.add_argument('--height', type=int, default=600,
                   help='The image is resized to this height before processing')

    # edge detection
    g = p.add_argument_group(title='Edge detection',
                             description='Canny thresholds are higher than normal to pick up lights '
                                         'rather than the steel structure')
    add_edge_detection(g)

    # line detection
    g = p.add_argument_group(title='Line detection',
                             description='Parameters of the probabilistic Hough transform')
    add_line_detection(g)

    # estimation
    g = p.add_argument_group(title='Estimation')
    add_estimation(g)

    # output
    g = p.add_argument_group(title='Output')
    g.add_argument('--output-dir', type=str, default=None,
                   help='If given, result images are written to this directory')
    g.add_argument('--no-display', default=False, action='store_true',
                   help='Do not open windows showing the result images')

    return p


def cli(argv=None):
    """Entry point of the command line interface."""

    # parse arguments
    parser = setup_parser()
    args = parser.parse_args(argv)
    del args.settings_filename

    # input sanity checks
    if args.width <= 0 or args.height <= 0:
        parser.error('--width and --height must be positive')

    if args.canny_low > args.canny_high:
        parser.error('--canny-low must not be larger than --canny-high')

    if not args.password:
        args.password = os.getenv('VANISHING_POINT_FINDER_IMAGE_PASSWORD')

    setup_logging(logger, syslog=args.syslog, loglevel=args.loglevel)
    logger.debug('Starting with parameters %s', args.__dict__)
    del args.loglevel
    del args.syslog

    try:
        main(**args.__dict__)
    except (ImageLoadError, EstimationError, OSError) as e:
        logger.error('%s', e)
        sys.exit(1)


if __name__ == '__main__':
    cli()
