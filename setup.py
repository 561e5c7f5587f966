"""
Setup script for nclex-study.

Study core for NCLEX exam preparation:

1. Spaced repetition - SM-2 scheduling per learner and question
2. Exam simulations - standard and computer-adaptive (CAT) sessions
3. Question generation - LLM content validated against a schema

The 'nclex-study' command is the CLI entry point; the REST API is served
with 'nclex-study serve'.
"""

from setuptools import find_packages, setup

setup(
    name="nclex-study",
    version="0.1.0",
    description="Spaced repetition and adaptive exam simulations for NCLEX preparation",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(include=["nclex_study", "nclex_study.*"]),
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        "psycopg2-binary>=2.9.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "httpx>=0.25.0",
        # API
        "fastapi>=0.100.0",
        "uvicorn>=0.23.0",
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
            "nclex-study=nclex_study.cli.main:run",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="nclex nursing spaced-repetition sm2 adaptive-testing education",
)
