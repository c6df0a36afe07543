#!/usr/bin/env python
from setuptools import find_packages, setup

# read the version without importing the package (and its dependencies)
version = {}
with open('ecdespike/version.py') as f:
    exec(f.read(), version)

setup(
    name='ecdespike',
    version=version['__version__'],
    description=(
        "Window-based despiking of eddy covariance time series"),
    long_description=open('README.md').read(),
    long_description_content_type="text/markdown",
    keywords="EC, despiking, quality control, time series",
    license='MIT',
    platforms=['any'],
    packages=find_packages(exclude=['tests*', 'sample*', 'deprecated*']),
    include_package_data=True,
    install_requires=[
        'pandas>=2.0.0',
        'matplotlib>=3.1.0',
        'numpy>=1.24',
        'scipy>=1.10.0',
        'PyYAML',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': ['ecdespike=ecdespike.handler:cli'],
    },
    # See http://pypi.python.org/pypi?%3Aaction=list_classifiers
    classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Other Environment',
        'Intended Audience :: Science/Research',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Programming Language :: Python :: 3.13',
        'Topic :: Scientific/Engineering :: Atmospheric Science'],
    python_requires='>=3.9',
)
