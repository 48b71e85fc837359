#!/usr/bin/env python3

"""
Setup script for the Astroquery MCP Server

Installs the server, its archive integrations, and the `astroquery-mcp`
console command.
"""

from pathlib import Path

from setuptools import find_packages, setup

HERE = Path(__file__).parent


def read_requirements():
    """Read runtime requirements, skipping comments and blank lines."""
    lines = (HERE / "requirements.txt").read_text().splitlines()
    return [line.strip() for line in lines if line.strip() and not line.startswith("#")]


setup(
    name="astroquery-mcp",
    version="1.2.5",
    description="MCP server for querying astronomical archives (TAP services and REST APIs)",
    python_requires=">=3.9",
    py_modules=["server", "config"],
    packages=find_packages(include=["data_io", "data_sources"]),
    install_requires=read_requirements(),
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "astroquery-mcp=server:run",
        ],
    },
)
