"""
Setup configuration for the docmachine package.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="docmachine",
    version="0.1.0",
    author="docmachine Contributors",
    author_email="contributors@docmachine.example.com",
    description="An ActiveRecord-style document mapper with plugin-composed document types",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/docmachine",
    packages=find_packages(include=["docmachine", "docmachine.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Database",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-cov",
            "ruff",
            "mypy",
        ],
        "test": ["pytest>=6.0"],
    },
    project_urls={
        "Bug Reports": "https://github.com/yourusername/docmachine/issues",
        "Source": "https://github.com/yourusername/docmachine",
    },
)
