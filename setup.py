"""
Pin Registry Setup
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read() if f else ""

setup(
    name="pin-registry",
    version="0.1.0",
    author="Pin Registry Team",
    description="Geospatial-temporal pin registry binding content hashes to locations in time",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["pinreg", "pinreg.*"]),
    python_requires=">=3.10",
    install_requires=[
        "ntplib>=0.4.0",
        "httpx>=0.25.0",
        "aiohttp>=3.9.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-timeout>=2.2.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "pin-node=pinreg.node.node:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Database",
        "Topic :: System :: Distributed Computing",
    ],
    keywords="registry geospatial content-hash pin ownership",
)
