#!/usr/bin/env python3
"""
Setup configuration for song-library
A song metadata lookup service that backfills its store from an external provider
"""

from pathlib import Path

from setuptools import setup, find_packages

# Read README for long description
readme = Path(__file__).parent / "README.md"
long_description = readme.read_text(encoding="utf-8") if readme.exists() else ""

# Core requirements (always installed)
core_requirements = [
    "flask>=2.3.0",
    "requests>=2.31.0",
    "click>=8.1.7",
    "rich-click>=1.7.0",
    "pyyaml>=6.0.1",
    "python-dotenv>=1.0.0",
]

setup(
    name="song-library",
    version="0.1.0",
    author="song-library Team",
    description="Song metadata lookup service with external backfill and static enrichment",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["song_library", "song_library.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Web Environment",
        "Framework :: Flask",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
        "Topic :: Multimedia :: Sound/Audio",
    ],
    python_requires=">=3.10",
    install_requires=core_requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "black>=23.11.0",
            "flake8>=6.1.0",
            "mypy>=1.7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "song-library=song_library.cli:main",
        ],
    },
    include_package_data=True,
    keywords="music songs lyrics metadata api flask",
)
