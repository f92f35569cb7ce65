from __future__ import annotations

from pathlib import Path

from setuptools import find_packages, setup  # type: ignore


ROOT = Path(__file__).resolve().parent


def _long_description() -> str:
    readme = ROOT / "README.md"
    if readme.exists():
        return readme.read_text(encoding="utf-8")
    return ""


setup(
    name="pathplay",
    version="0.1.0",
    description="Position history playback service for game-server fleet dashboards",
    long_description=_long_description(),
    long_description_content_type="text/markdown",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "numpy>=1.24",
        "fastapi>=0.100",
        "uvicorn>=0.23",
        "httpx>=0.24",
    ],
    extras_require={
        "test": [
            "pytest>=7",
            "httpx>=0.24",
        ],
    },
    entry_points={
        "console_scripts": [
            "pathplay = pathplay.__main__:main",
        ],
    },
)
