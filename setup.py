"""
Setup configuration for CDMC-Toolkit.
"""

from setuptools import setup, find_namespace_packages

setup(
    name="cdmc-toolkit",
    version="0.1.0",
    description="Calibration design matrices for multicomponent systems",
    author="CDMC-Toolkit Contributors",
    packages=find_namespace_packages(include=["src", "src.*"]),
    python_requires=">=3.11",
    install_requires=[
        "numpy",
        "pandas",
        "scipy",
    ],
    extras_require={
        "dev": [
            "pytest",
            "pytest-cov",
        ],
    },
)
