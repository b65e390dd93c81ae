import cv2
import logging
import numpy as np
from ._estimator import LineSegment
logger = logging.getLogger('vanishing_point_finder.image_processing')


def resize_image(img, width=800, height=600):
    """
    Resize `img` to the working size. All pixel coordinates of detected lines and of the vanishing point refer
    to the resized image.
    """
    return cv2.resize(img, (width, height))


def detect_edges(img, canny_low=250, canny_high=500):
    """
    Finds edges with the Canny detector.

    The default thresholds are higher than usual since the lights on a wheel are of interest, not its steel
    structure.

    Parameters
    ----------
    img : np.ndarray
        Color (BGR) or grayscale image.
    canny_low : float
        Lower threshold for the hysteresis procedure.
    canny_high : float
        Upper threshold for the hysteresis procedure.

    Returns
    -------
    edges : np.ndarray
        Binary edge image with the same height and width as `img`.
    """
    if img.ndim == 3:
        gray = cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)
    else:
        gray = img
    return cv2.Canny(gray, canny_low, canny_high)


def draw_contour_image(edges, thickness=2):
    """
    Traces contours in the edge image and draws all of them in white on a new black image.

    Each contour consists of multiple lines approximating a curve.
    """
    contours, _ = cv2.findContours(edges, cv2.RETR_TREE, cv2.CHAIN_APPROX_SIMPLE)
    logger.debug('Found %d contours', len(contours))

    contour_img = np.zeros(edges.shape[:2], dtype=np.uint8)
    for i in range(0, len(contours)):
        cv2.drawContours(contour_img, contours, i, 255, thickness)
    return contour_img


def thin_contours(contour_img, iterations=2):
    """
    Get rid of some extra thickness on the drawn contours, which reduces the number of duplicate lines found
    by the Hough transform.
    """
    if iterations <= 0:
        return contour_img
    return cv2.erode(contour_img, None, iterations=iterations)


def find_segments(contour_img, rho=1.0, theta=np.pi / 180, threshold=80,
                  min_line_length=100, max_line_gap=20):
    """
    Detects line segments in a binary image with the probabilistic Hough transform.

    Parameters
    ----------
    contour_img : np.ndarray
        Binary single channel image.
    rho : float
        Distance resolution of the accumulator in pixels.
    theta : float
        Angle resolution of the accumulator in radians.
    threshold : int
        Minimum number of votes to consider a line.
    min_line_length : float
        Minimum line length in pixels.
    max_line_gap : float
        Maximum gap in pixels between points on a single line.

    Returns
    -------
    list[LineSegment]
        Possibly empty.
    """
    lines = cv2.HoughLinesP(contour_img, rho, theta, threshold,
                            minLineLength=min_line_length, maxLineGap=max_line_gap)
    if lines is None:
        logger.debug('Found 0 lines')
        return []

    logger.debug('Found %d lines', len(lines))
    segments = []
    for i in range(0, len(lines)):
        for x1, y1, x2, y2 in lines[i]:
            segments.append(LineSegment.from_hough(int(x1), int(y1), int(x2), int(y2)))
    return segments


def detect_segments(img,
                    canny_low=250, canny_high=500,
                    contour_thickness=2, erode_iterations=2,
                    rho=1.0, theta=np.pi / 180, threshold=80, min_line_length=100, max_line_gap=20):
    """
    Runs the edge/line extraction: Canny edges, contour tracing, drawing and thinning of contours, and finally
    the probabilistic Hough transform.

    See `detect_edges`, `draw_contour_image`, `thin_contours`, and `find_segments` for the parameters.

    Returns
    -------
    segments : list[LineSegment]
        Detected line segments in pixel coordinates of `img`.
    contour_img : np.ndarray
        Debug image with the thinned contours the lines were searched in.
    """
    edges = detect_edges(img, canny_low=canny_low, canny_high=canny_high)
    contour_img = draw_contour_image(edges, thickness=contour_thickness)
    contour_img = thin_contours(contour_img, iterations=erode_iterations)
    segments = find_segments(contour_img, rho=rho, theta=theta, threshold=threshold,
                             min_line_length=min_line_length, max_line_gap=max_line_gap)
    return segments, contour_img


def draw_segments(segments, shape, color=(0, 255, 0), thickness=1):
    """
    Draws segments on a black image, which makes them easier to see than on top of the original.

    Parameters
    ----------
    segments : list[LineSegment]
    shape : tuple
        Height and width of the image to create. Further entries are ignored.

    Returns
    -------
    np.ndarray
        BGR image.
    """
    img = np.zeros((shape[0], shape[1], 3), dtype=np.uint8)
    for (x1, y1), (x2, y2) in segments:
        cv2.line(img, (int(x1), int(y1)), (int(x2), int(y2)), color, thickness)
    return img


def draw_solution(img, point, radius=5, color=(0, 255, 255)):
    """
    Draws a yellow circle around the vanishing point `point` into `img` (in place).

    Vanishing points may lie far outside of the image; they are clipped to the int32 range of cv2.
    """
    center = tuple(int(np.clip(c, -2**30, 2**30)) for c in point.as_pixel())
    cv2.circle(img, center, radius, color)
    return img
