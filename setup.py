#!/usr/bin/env python3
"""
Setup script for Rendezvous - distributed barrier over a coordination store.
"""

from pathlib import Path
from setuptools import setup, find_packages

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""

setup(
    name="rendezvous-barrier",
    version="0.1.0",
    description="Distributed rendezvous barrier over a hierarchical coordination store",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["rendezvous", "rendezvous.*"]),

    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: System :: Distributed Computing",
    ],

    python_requires=">=3.8",

    install_requires=[
        "rich>=12.0.0",
        "typer>=0.7.0",
        "orjson>=3.9.0",
        "prometheus-client>=0.19.0",
    ],

    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-mock>=3.12.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "pytest-mock>=3.12.0",
            "black>=23.0.0",
            "isort>=5.12.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
        ],
    },

    # Entry points for command-line scripts
    entry_points={
        "console_scripts": [
            "rendezvous = rendezvous.cli:main",
        ],
    },

    # Package data
    package_data={
        "rendezvous": ["py.typed"],
    },

    zip_safe=False,
)
