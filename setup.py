#!/usr/bin/env python3
"""
BannerScan Setup Script
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="bannerscan",
    version="1.0.0",
    author="BannerScan Team",
    description="Concurrent TCP port scanner with service detection and banner grabbing",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["bannerscan", "bannerscan.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "Intended Audience :: Information Technology",
        "Topic :: System :: Networking",
        "Topic :: Security",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
            "aiohttp>=3.8.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "bannerscan=bannerscan.cli:main",
        ],
    },
)
