from collections import namedtuple
from enum import Enum
import logging
import numpy as np
import cv2

logger = logging.getLogger('vanishing_point_finder.estimator')


class EstimationError(Exception):
    """
    Named exception for easier exception handling when no vanishing point
    can be computed from a set of line segments.
    """
    pass


class InsufficientData(EstimationError):
    """No line segments were supplied, so there is nothing to intersect."""
    pass


class SolveFailed(EstimationError):
    """The least-squares decomposition did not produce a solution."""
    pass


class SolverBackend(Enum):
    """
    Enum to select the library solving the least-squares problem.

    Both backends use a singular value decomposition.

    This enum is specially crafted, so it can be used as `type` and `choices` of an argparse argument.
    """
    numpy = 'numpy'
    opencv = 'opencv'

    def __str__(self):
        return self.name


Point = namedtuple('Point', ['x', 'y'])


class LineSegment(namedtuple('LineSegment', ['p1', 'p2'])):
    """
    A straight line segment between the image points `p1` and `p2`.
    """
    __slots__ = ()

    def __new__(cls, p1, p2):
        return super().__new__(cls, Point(*p1), Point(*p2))

    @classmethod
    def from_hough(cls, x1, y1, x2, y2):
        """Build a segment from one row returned by cv2.HoughLinesP."""
        return cls((x1, y1), (x2, y2))

    @property
    def is_vertical(self):
        return self.p1.x == self.p2.x

    @property
    def is_degenerate(self):
        return self.p1 == self.p2

    @property
    def length(self):
        return float(np.hypot(self.p2.x - self.p1.x, self.p2.y - self.p1.y))


# a*x + c*y = d
LinearConstraint = namedtuple('LinearConstraint', ['a', 'c', 'd'])


class SolutionPoint(namedtuple('SolutionPoint', ['x', 'y'])):
    """
    The estimated vanishing point in pixel coordinates of the working image.
    """
    __slots__ = ()

    def as_pixel(self):
        """Rounded integer point as required by the cv2 drawing functions."""
        return int(round(self.x)), int(round(self.y))


class EstimationSystem(namedtuple('EstimationSystem', ['A', 'b'])):
    """
    Dense linear system `A v = b` with one row per line segment.

    `A` has shape (N, 2) and `b` has shape (N,). Row `i` of both belongs to the same segment.
    """
    __slots__ = ()

    def __new__(cls, A, b):
        A = np.asarray(A, dtype=np.float64)
        b = np.asarray(b, dtype=np.float64).reshape(-1)
        if A.ndim != 2 or A.shape[1] != 2:
            raise ValueError(f'A must have shape (N, 2), got {A.shape}')
        if A.shape[0] != b.shape[0]:
            raise ValueError(f'A has {A.shape[0]} rows but b has {b.shape[0]}')
        return super().__new__(cls, A, b)

    @property
    def n(self):
        """Number of rows, i.e. number of line segments."""
        return self.A.shape[0]

    @classmethod
    def from_constraints(cls, constraints):
        constraints = list(constraints)
        if not constraints:
            return cls(np.empty((0, 2)), np.empty(0))
        rows = np.array(constraints, dtype=np.float64)
        return cls(rows[:, :2], rows[:, 2])

    def residuals(self, point):
        """
        Residual `A v - b` for every row, evaluated at `point`.
        """
        return self.A @ np.asarray(point, dtype=np.float64) - self.b


def constraint_from_segment(segment):
    """
    Convert a line segment into the linear equation of its supporting line.

    Vertical lines give `1*x + 0*y = x1`. All other lines are written as `y = m*x + b`, which is
    rearranged to `-m*x + 1*y = b`.

    Parameters
    ----------
    segment : LineSegment

    Returns
    -------
    LinearConstraint
    """
    (x1, y1), (x2, y2) = segment
    x1, y1, x2, y2 = float(x1), float(y1), float(x2), float(y2)

    if x1 == x2:
        # avoid the infinite slope
        return LinearConstraint(1.0, 0.0, x1)

    m = (y1 - y2) / (x1 - x2)
    return LinearConstraint(-m, 1.0, y1 - m * x1)


def _as_segment(item):
    # accepts ((x1, y1), (x2, y2)) as well as cv2.HoughLinesP rows [[x1, y1, x2, y2]]
    if isinstance(item, LineSegment):
        return item
    coords = np.asarray(item).reshape(-1)
    if coords.size != 4:
        raise ValueError(f'Cannot interpret {item!r} as a line segment')
    return LineSegment.from_hough(*coords.tolist())


def build_system(segments, drop_degenerate=False):
    """
    Build the least-squares system for a sequence of line segments.

    Parameters
    ----------
    segments : iterable of LineSegment or tuple
        Each item is a pair of points ((x1, y1), (x2, y2)).
    drop_degenerate : bool
        If True, segments whose end points coincide are skipped. Otherwise (default), they
        contribute a vertical line through their single point.

    Returns
    -------
    EstimationSystem
    """
    constraints = []
    n_dropped = 0
    for segment in segments:
        segment = _as_segment(segment)
        if drop_degenerate and segment.is_degenerate:
            n_dropped += 1
            continue
        constraints.append(constraint_from_segment(segment))

    if n_dropped:
        logger.debug('Dropped %d zero-length segments', n_dropped)

    return EstimationSystem.from_constraints(constraints)


def _lstsq_numpy(A, b):
    try:
        v, _, rank, _ = np.linalg.lstsq(A, b, rcond=None)
    except np.linalg.LinAlgError as e:
        raise SolveFailed(f'solving failed: {e}') from e
    if rank < A.shape[1]:
        logger.debug('System is rank deficient (rank %d), using minimum-norm solution', rank)
    return v


def _lstsq_opencv(A, b):
    flags = cv2.DECOMP_SVD
    if A.shape[0] < A.shape[1]:
        # cv2.solve rejects under-determined systems; the 2x2 normal equations give the minimum-norm solution
        flags |= cv2.DECOMP_NORMAL
    try:
        ret, v = cv2.solve(np.ascontiguousarray(A), np.ascontiguousarray(b).reshape(-1, 1), flags=flags)
    except cv2.error as e:
        raise SolveFailed(f'solving failed: {e}') from e
    if not ret:
        raise SolveFailed('solving failed: cv2.solve returned false')
    return v.reshape(-1)


_solvers = {
    SolverBackend.numpy: _lstsq_numpy,
    SolverBackend.opencv: _lstsq_opencv,
}


def solve_least_squares(A, b, backend=SolverBackend.numpy):
    """
    Find the point `v` minimizing `|A v - b|^2` via a singular value decomposition.

    Rank-deficient systems (e.g. only parallel lines) do not fail but give the minimum-norm solution.

    Parameters
    ----------
    A : np.ndarray
        Matrix with shape (N, 2).
    b : np.ndarray
        Vector with N elements.
    backend : SolverBackend or str
        Library used for the decomposition.

    Returns
    -------
    SolutionPoint

    Raises
    ------
    InsufficientData
        If the system has no rows.
    SolveFailed
        If the decomposition does not produce a finite solution.
    """
    system = EstimationSystem(A, b)
    if system.n == 0:
        raise InsufficientData('no lines to intersect')

    v = _solvers[SolverBackend(backend)](system.A, system.b)

    if not np.all(np.isfinite(v)):
        raise SolveFailed(f'solving failed: solution {v} is not finite')

    return SolutionPoint(float(v[0]), float(v[1]))


def estimate_vanishing_point(segments, backend=SolverBackend.numpy, drop_degenerate=False):
    """
    Compute the point of least-squares best intersection of a set of line segments.

    Parameters
    ----------
    segments : iterable of LineSegment or tuple
    backend : SolverBackend or str
    drop_degenerate : bool
        See `build_system`.

    Returns
    -------
    SolutionPoint
    """
    system = build_system(segments, drop_degenerate=drop_degenerate)
    logger.debug('Estimating intersection of %d lines', system.n)
    point = solve_least_squares(system.A, system.b, backend=backend)
    logger.debug('Solution %s with squared residual %g',
                 point, float(np.sum(system.residuals(point)**2)))
    return point
