import cv2
import logging
import numpy as np
import os
import requests
import urllib3
from ._estimator import EstimationError, SolverBackend, estimate_vanishing_point
from ._image_processing import detect_segments, draw_segments, draw_solution, resize_image


logger = logging.getLogger('vanishing_point_finder.main')

# window titles and file names of the result images
result_names = {'lines': ('Detect Lines', 'detect_lines.png'),
                'contours': ('Contours', 'contours.png'),
                'original': ('Original', 'original.png'),
                }


class ImageLoadError(Exception):
    """
    Named exception for easier exception handling when an image cannot be read or decoded.
    """
    pass


def get_image(source, width=800, height=600, username=None, password=None, **kwargs):
    """
    Imports an image and resizes it to the working size.

    **kwargs are forwarded to `requests.get()`, e.g. to set a timeout.

    Parameters
    ----------
    source : str
        If `source` starts with http:// or https://, it will be downloaded using `username` and `password`.
        If `source` starts with file:// or is a plain path, it will be opened.
    width : int
        Width in pixels of the working image.
    height : int
        Height in pixels of the working image.
    username : str
        Optional username for image download.
    password : str
        Optional password for image download.

    Returns
    -------
    img : np.ndarray
        The obtained BGR image with shape (height, width, 3).

    Raises
    ------
    ImageLoadError
        If the image cannot be obtained or decoded.
    """
    if source.lower().startswith(('http://', 'https://')):
        logger.debug('Import image from URL %s', source)
        try:
            resp = requests.get(source,
                                auth=(username, password) if username is not None else None,
                                **kwargs)
        except (requests.exceptions.RequestException,
                urllib3.exceptions.HTTPError) as e:
            raise ImageLoadError(f'Cannot download {source}: {e}') from e
        if not resp.ok or len(resp.content) == 0:
            raise ImageLoadError(f'Empty image received from {source} with {resp}: {resp.reason}')
        img = cv2.imdecode(np.asarray(bytearray(resp.content), dtype='uint8'), cv2.IMREAD_COLOR)
    else:
        filename = source[7:] if source.lower().startswith('file://') else source
        logger.debug('Import image from file %s', filename)
        if not os.path.isfile(filename):
            raise ImageLoadError(f'{filename} is not a file')
        img = cv2.imread(filename, cv2.IMREAD_COLOR)

    if img is None or img.size == 0:
        raise ImageLoadError(f'Cannot decode image from {source}')

    logger.debug('Import image is done, original size %dx%d', img.shape[1], img.shape[0])
    return resize_image(img, width=width, height=height)


def show_results(images):
    """
    Shows each image in its own window and blocks until a key is pressed.
    """
    for key, img in images.items():
        title = result_names[key][0]
        cv2.namedWindow(title)
        cv2.imshow(title, img)
    cv2.waitKey(0)
    cv2.destroyAllWindows()


def save_results(images, output_dir):
    """
    Writes the result images as PNG files to `output_dir`.

    Returns
    -------
    list[str]
        The written filenames.
    """
    os.makedirs(output_dir, exist_ok=True)
    filenames = []
    for key, img in images.items():
        filename = os.path.join(output_dir, result_names[key][1])
        if not cv2.imwrite(filename, img):
            raise OSError(f'Cannot write {filename}')
        logger.debug('Wrote %s', filename)
        filenames.append(filename)
    return filenames


def find_vanishing_point(img,
                         canny_low=250, canny_high=500,
                         contour_thickness=2, erode_iterations=2,
                         rho=1.0, theta_deg=1.0, hough_threshold=80, min_line_length=100, max_line_gap=20,
                         backend=SolverBackend.numpy, drop_degenerate=False):
    """
    Detects line segments in `img` and estimates their vanishing point.

    Returns
    -------
    point : SolutionPoint or None
        None if the estimation failed.
    images : dict
        Result images 'lines', 'contours', and 'original' (copy of `img`); the vanishing point is drawn
        on 'lines' and 'original' if it was found.
    error : EstimationError or None
        The reason if no point was found.
    """
    segments, contour_img = detect_segments(img,
                                            canny_low=canny_low, canny_high=canny_high,
                                            contour_thickness=contour_thickness,
                                            erode_iterations=erode_iterations,
                                            rho=rho, theta=theta_deg * np.pi / 180,
                                            threshold=hough_threshold,
                                            min_line_length=min_line_length,
                                            max_line_gap=max_line_gap)
    logger.info('Detected %d line segments', len(segments))

    images = {'lines': draw_segments(segments, img.shape),
              'contours': contour_img,
              'original': img.copy(),
              }

    try:
        point = estimate_vanishing_point(segments, backend=backend, drop_degenerate=drop_degenerate)
    except EstimationError as e:
        return None, images, e

    draw_solution(images['lines'], point)
    draw_solution(images['original'], point)
    return point, images, None


def main(source='wheel.jpg', username=None, password=None, timeout=5.0,
         width=800, height=600,  # working image size
         canny_low=250, canny_high=500,  # edge detection
         contour_thickness=2, erode_iterations=2,
         rho=1.0, theta_deg=1.0, hough_threshold=80, min_line_length=100, max_line_gap=20,  # line detection
         backend=SolverBackend.numpy, drop_degenerate=False,  # estimation
         output_dir=None, no_display=False,
         ):
    """
    Loads an image, estimates the vanishing point of the lines found in it, prints the result, and shows or
    saves the result images.

    Returns
    -------
    SolutionPoint

    Raises
    ------
    ImageLoadError
    EstimationError
        After the result images have been shown or saved.
    """
    img = get_image(source, width=width, height=height,
                    username=username, password=password, timeout=timeout)

    point, images, error = find_vanishing_point(img,
                                                canny_low=canny_low, canny_high=canny_high,
                                                contour_thickness=contour_thickness,
                                                erode_iterations=erode_iterations,
                                                rho=rho, theta_deg=theta_deg,
                                                hough_threshold=hough_threshold,
                                                min_line_length=min_line_length,
                                                max_line_gap=max_line_gap,
                                                backend=backend, drop_degenerate=drop_degenerate)

    if point is not None:
        x, y = point.as_pixel()
        print(f'solution = {x}, {y}')
        logger.info('Vanishing point at %.3f, %.3f', point.x, point.y)

    if output_dir:
        save_results(images, output_dir)
    if not no_display:
        show_results(images)

    if error is not None:
        raise error
    return point
