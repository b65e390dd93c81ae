"""
This module locates the vanishing point of roughly-converging straight edges in a still photograph,
e.g. the spokes of a wheel.

Edges are found with the Canny detector, traced as contours and searched for line segments with the
probabilistic Hough transform. The vanishing point is the point of least-squares best intersection of the
lines through all segments, computed via a singular value decomposition.

Run `python -m vanishing_point_finder wheel.jpg` to print the point and show the detected lines.
"""

__version__ = '0.1'
from ._estimator import (EstimationError, InsufficientData, SolveFailed, SolverBackend,
                         LineSegment, LinearConstraint, EstimationSystem, SolutionPoint,
                         constraint_from_segment, build_system, solve_least_squares, estimate_vanishing_point)
from ._image_processing import detect_segments, draw_segments, draw_solution
from ._vanishing_point_finder import ImageLoadError, get_image, find_vanishing_point, main
