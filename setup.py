#!/usr/bin/env python3
"""
Setup script for httpmocker
Minimal installation with smart defaults
"""

from pathlib import Path
from setuptools import setup, find_packages

# Read version from package
version = "0.1.0"

# Minimal dependencies - just what we absolutely need
install_requires = [
    "requests>=2.28",
    "urllib3>=1.26",
    "pyjson5>=1.6.9",  # JSON5 scenario files
    "fastjsonschema>=2.20",
    "portalocker>=2.8",  # Safe concurrent recording
]

# Optional dependencies for enhanced features
extras_require = {
    "test": [
        "pytest>=7.0.0",
    ],
    "dev": [
        "pytest>=7.0.0",
        "black>=22.0.0",
        "mypy>=0.950",
    ],
}

setup(
    name="httpmocker",
    version=version,
    description="Mock, replay and record HTTP traffic of requests sessions",
    long_description=open("README.md").read() if Path("README.md").exists() else "",
    long_description_content_type="text/markdown",
    author="httpmocker contributors",
    python_requires=">=3.9",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        "console_scripts": [
            "httpmocker=httpmocker.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Testing",
        "Topic :: Internet :: WWW/HTTP",
    ],
)
