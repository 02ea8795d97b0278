#!/usr/bin/env python3
"""
Setup configuration for lyricsync
Lyrics acquisition and playback synchronization engine
"""

from setuptools import setup, find_packages

# Read README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Core requirements (always installed)
core_requirements = [
    "spotipy>=2.22.1",
    "click>=8.1.7",
    "pyyaml>=6.0.1",
    "colorama>=0.4.6",
    "python-dotenv>=1.0.0",
    "aiohttp>=3.9.1",
    "asyncio-throttle>=1.0.2",
]

setup(
    name="lyricsync",
    version="v0.9.0-beta",
    author="lyricsync Team",
    description="Fetch, match and time-align lyrics for the currently playing Spotify track",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
        "Framework :: AsyncIO",
    ],
    python_requires=">=3.9",
    install_requires=core_requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "pytest-asyncio>=0.21.1",
        ],
    },
    entry_points={
        "console_scripts": [
            "lyricsync=lyricsync.main:cli",
        ],
    },
    keywords="spotify lyrics lrc lrclib synchronization",
)
