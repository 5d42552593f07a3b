from setuptools import setup, find_packages

setup(
    name="jamrec",
    version="0.1.0",
    description="Chat-driven multitrack recording sessions for Jamulus servers",
    author="",
    python_requires=">=3.10",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pydantic>=2.0.0",
        "pyyaml>=6.0.0",
        "pypubsub>=4.0.3",
        "aiohttp>=3.8.0",
        "uuid6>=2024.1.12",
    ],
    extras_require={
        "tests": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "jamrec=jamrec.main:main",
        ],
    },
)
