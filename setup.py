from setuptools import setup, find_packages

setup(
  name = 'capvol',
  packages = find_packages(include=['capvol', 'capvol.*']),
  version = '0.1',
  license='Mozilla Public License Version 2.0',
  description = 'Direct calibration of caplet/floorlet volatility surfaces to cap/floor quotes',
  keywords = ['finance', 'derivative', 'caplet', 'volatility'],
  python_requires='>=3.10',
  install_requires=[
    'holidays',
    'pandas',
    'numpy',
    'scipy',
    'matplotlib',
      ],
  extras_require={
    'test': ['pytest'],
  },
  classifiers=[
    'Development Status :: 3 - Alpha',
    'Intended Audience :: Developers',
    'License :: OSI Approved :: Mozilla Public License 2.0 (MPL 2.0)',
    'Programming Language :: Python :: 3.10',
  ],
)
