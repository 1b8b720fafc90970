#!/usr/bin/env python3

from setuptools import setup, find_packages

setup(
    name="siteforge",
    version="0.1.0",
    description="SiteForge: resilient, chunked LLM generation of website projects from free-text descriptions",
    author="SiteForge Team",
    author_email="siteforge@example.com",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "siteforge": ["data/*.yaml"],
    },
    include_package_data=True,
    python_requires=">=3.8",
    install_requires=[
        # LLM API
        "openai>=1.0.0",
        "httpx>=0.24.0",
        "tiktoken>=0.5.0",

        # Utilities
        "click>=8.1.0",
        "pyyaml>=6.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
        ],
        "dev": [
            "black>=23.0.0",
            "flake8>=6.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "siteforge=siteforge.cli:main",
        ]
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Software Development :: Code Generators",
        "Topic :: Internet :: WWW/HTTP :: Site Management",
    ],
)
