#!/usr/bin/env python3
"""
KV-Router Setup Script
======================
Allows installation of the kv-cluster-router package.

Usage:
    pip install -e .           # Development install
    pip install -e .[test]     # Development install with test tools
    pip install .              # Regular install
"""

from setuptools import setup, find_packages

setup(
    name="kv-cluster-router",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "redis>=5.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
)
