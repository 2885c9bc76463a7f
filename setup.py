#!/usr/bin/env python3
"""
Setup script for GenForge

Install with:
    pip install -e .

With test tooling:
    pip install -e ".[dev]"
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

# Engine + CLI dependencies
requirements = [
    "anthropic>=0.18.0,<1.0",
    "httpx>=0.26.0",
    "pydantic>=2.5.0",
    "pydantic-settings>=2.1.0",
    "python-dotenv>=1.0.0",
    "rich>=13.7.0",
]

setup(
    name="genforge",
    version="1.0.0",
    description="GenForge - prompt-to-app generation engine",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="GenForge Team",
    license="MIT",
    package_dir={"genforge": "backend/genforge", "cli": "cli"},
    packages=["cli"] + find_packages("backend", include=["genforge", "genforge.*"]),
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "genforge=cli.main:main",
            "gf=cli.main:main",  # Short alias
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Code Generators",
    ],
    keywords="ai code-generation claude anthropic app-generator",
)
