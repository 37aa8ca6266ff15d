"""Setup script for pathint package."""

from setuptools import setup, find_packages

setup(
    name="pathint",
    version="1.0.0",
    description="Feynman path integral Monte Carlo sampler for the harmonic oscillator",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    author="pathint Contributors",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.20.0",
        "matplotlib>=3.3.0",
        "pandas>=1.3.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "pathint=pathint.cli:main",
        ],
    },
)
