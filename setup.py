from setuptools import setup, find_packages

setup(
    name="ringstat",
    version="0.1.0",
    description="Shot-group statistics and session aggregation for shooting clubs",
    author="RingStat",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "numpy>=1.26.0",
    ],
    extras_require={
        "test": ["pytest>=7.4.0"],
    },
    entry_points={
        "console_scripts": [
            "ringstat=ringstat.main:main",
        ],
    },
)
