"""
Tests for edge and line detection on synthetic images.
"""

import unittest

import cv2
import numpy as np

from vanishing_point_finder import LineSegment, SolutionPoint, detect_segments, draw_segments, draw_solution
from vanishing_point_finder import estimate_vanishing_point
from vanishing_point_finder._image_processing import (detect_edges, draw_contour_image, find_segments,
                                                      resize_image, thin_contours)

CENTER = (400, 300)


def spoke_image(center=CENTER, width=800, height=600, r_inner=80, r_outer=290, thickness=3):
    """Black BGR image with white spokes pointing at `center`."""
    img = np.zeros((height, width, 3), dtype=np.uint8)
    for angle in np.deg2rad(15 + 22.5 * np.arange(8)):
        c, s = np.cos(angle), np.sin(angle)
        p1 = (int(round(center[0] + r_inner * c)), int(round(center[1] + r_inner * s)))
        p2 = (int(round(center[0] + r_outer * c)), int(round(center[1] + r_outer * s)))
        cv2.line(img, p1, p2, (255, 255, 255), thickness)
    return img


class TestEdgesAndContours(unittest.TestCase):

    def test_resize(self):
        img = np.zeros((30, 40, 3), dtype=np.uint8)
        self.assertEqual(resize_image(img).shape, (600, 800, 3))
        self.assertEqual(resize_image(img, width=20, height=10).shape, (10, 20, 3))

    def test_edges_of_color_and_gray_images(self):
        img = spoke_image()
        edges = detect_edges(img)
        self.assertEqual(edges.shape, (600, 800))
        self.assertGreater(np.count_nonzero(edges), 0)
        gray = cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)
        np.testing.assert_array_equal(detect_edges(gray), edges)

    def test_blank_image_has_no_edges(self):
        edges = detect_edges(np.zeros((600, 800, 3), dtype=np.uint8))
        self.assertEqual(np.count_nonzero(edges), 0)

    def test_contour_image(self):
        edges = detect_edges(spoke_image())
        contour_img = draw_contour_image(edges)
        self.assertEqual(contour_img.shape, edges.shape)
        self.assertEqual(contour_img.dtype, np.uint8)
        self.assertEqual(set(np.unique(contour_img)), {0, 255})

    def test_thin_contours(self):
        img = np.zeros((50, 50), dtype=np.uint8)
        img[10:40, 20:27] = 255
        thinned = thin_contours(img, iterations=2)
        self.assertEqual(np.count_nonzero(thinned[25]), 3)
        self.assertIs(thin_contours(img, iterations=0), img)


class TestDetectSegments(unittest.TestCase):

    def test_blank_image(self):
        segments, contour_img = detect_segments(np.zeros((600, 800, 3), dtype=np.uint8))
        self.assertEqual(segments, [])
        self.assertEqual(contour_img.shape, (600, 800))

    def test_find_segments_returns_line_segments(self):
        img = np.zeros((200, 300), dtype=np.uint8)
        cv2.line(img, (20, 100), (280, 100), 255, 1)
        segments = find_segments(img)
        self.assertGreater(len(segments), 0)
        for seg in segments:
            self.assertIsInstance(seg, LineSegment)
            self.assertIsInstance(seg.p1.x, int)
            self.assertLessEqual(abs(seg.p1.y - 100), 1)
            self.assertLessEqual(abs(seg.p2.y - 100), 1)

    def test_spokes_converge_at_center(self):
        segments, _ = detect_segments(spoke_image(), erode_iterations=0)
        self.assertGreaterEqual(len(segments), 8)
        v = estimate_vanishing_point(segments)
        self.assertAlmostEqual(v.x, CENTER[0], delta=10)
        self.assertAlmostEqual(v.y, CENTER[1], delta=10)


class TestDrawing(unittest.TestCase):

    def test_draw_segments(self):
        img = draw_segments([LineSegment((10, 10), (90, 10))], (50, 100))
        self.assertEqual(img.shape, (50, 100, 3))
        self.assertEqual(tuple(img[10, 50]), (0, 255, 0))
        self.assertEqual(tuple(img[30, 50]), (0, 0, 0))

    def test_draw_segments_empty(self):
        img = draw_segments([], (600, 800, 3))
        self.assertEqual(img.shape, (600, 800, 3))
        self.assertEqual(np.count_nonzero(img), 0)

    def test_draw_solution(self):
        img = np.zeros((50, 50, 3), dtype=np.uint8)
        out = draw_solution(img, SolutionPoint(24.8, 25.1))
        self.assertIs(out, img)
        self.assertEqual(tuple(img[25, 30]), (0, 255, 255))
        self.assertEqual(tuple(img[25, 25]), (0, 0, 0))
