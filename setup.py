"""
filefield setup.py — Package configuration.
"""

from setuptools import find_packages, setup

setup(
    name="filefield",
    version="1.0.0",
    description="filefield — File upload columns for record models",
    packages=find_packages(include=["filefield", "filefield.*"]),
    python_requires=">=3.11",
    install_requires=[
        "sqlalchemy>=2.0",
        "pydantic>=2.5",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
)
