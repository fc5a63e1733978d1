from setuptools import setup, find_packages

setup(
    name="neighbor_smooth",
    version="0.1.0",
    description="Loess, bin smoothing and k-nearest-neighbor estimation.",
    # Build configuration lives in pyproject.toml (setuptools.build_meta);
    # package metadata and dependencies are declared here.
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "scipy",
        "scikit-learn",
        "pandas",
        "python-dotenv",
    ],
    extras_require={
        "plots": ["matplotlib"],
        "test": ["pytest", "statsmodels", "matplotlib"],
    },
    entry_points={
        "console_scripts": [
            "neighbor-smooth=neighbor_smooth.cli:main",
        ],
    },
)
