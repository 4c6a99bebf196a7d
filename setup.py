"""Setup configuration for the Concierge Discord Bot."""

from setuptools import setup, find_packages

setup(
    name="concierge",
    version="0.1.0",
    description="A Discord helper bot with keyword routing, custom commands and AI answers",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "py-cord>=2.6",
        "openai>=1.40",
        "aiohttp>=3.9",
        "PyYAML>=6.0",
        "python-dotenv>=1.0",
        "prompt_toolkit>=3.0",
        "jsonschema>=4.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "concierge=concierge.main:main",
            "concierge-dashboard=concierge.dashboard.server:main",
        ],
    },
)
