"""
Setup script for prolly.
"""

from setuptools import setup, find_packages

setup(
    name="prolly",
    version="0.1.0",
    description="Bloom filter, Count-Min Sketch and HyperLogLog as immutable values",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    package_data={"prolly": ["py.typed"]},
    python_requires=">=3.8",
)
