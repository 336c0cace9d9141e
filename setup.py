"""
Setup script for askme.

askme is a personal spaced repetition scheduler for the terminal:

1. Items - One markdown file per question, optionally tagged
2. Index - A CSV file of SM-2 scheduling state, saved atomically
3. Review - One due question per run, rated 1-5

The 'askme' command is the entry point.
"""

from setuptools import find_packages, setup

setup(
    name="askme",
    version="1.0.0",
    description="Spaced repetition review of markdown flashcards in the terminal",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(include=["askme", "askme.*"]),
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0,<0.26",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "askme=askme.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning spaced-repetition sm2 flashcards cli",
)
