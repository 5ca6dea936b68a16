"""Setup configuration for the guildguard Discord moderation bot."""

from setuptools import setup, find_packages

setup(
    name="guildguard",
    version="0.1.0",
    description="A per-guild Discord moderation bot with auto-moderation and timed sanctions",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "py-cord>=2.6",
        "aiosqlite>=0.20",
        "PyYAML>=6.0",
        "python-dotenv>=1.0",
        "prompt_toolkit>=3.0",
        "aiohttp>=3.9",
    ],
    extras_require={
        "tests": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "guildguard=guildguard.main:main",
        ],
    },
)
