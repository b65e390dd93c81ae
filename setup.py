#!/usr/bin/env python

from setuptools import setup, find_packages

setup(name='vanishing_point_finder',
      version='0.1',
      description='Estimates the vanishing point of converging straight edges in a photograph',
      package_dir={'': 'src'},
      packages=find_packages('src'),
      python_requires='>=3.8',
      install_requires=['numpy', 'opencv-python<5', 'requests', 'urllib3'],
      extras_require={'test': ['pytest']},
      entry_points={'console_scripts': ['vanishing_point_finder = vanishing_point_finder.__main__:cli']},
      )
