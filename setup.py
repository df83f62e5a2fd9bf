from setuptools import setup, find_packages

setup(
    name="monad-analytics",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "fastapi",
        "uvicorn",
        "pydantic>=2",
        "pydantic-settings",
        "structlog",
        "sqlalchemy[asyncio]>=2.0",
        "aiosqlite",
        "aiohttp",
        "prometheus-client",
        "slowapi"
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx"
        ]
    },
    python_requires=">=3.9",
    entry_points={
        "console_scripts": [
            "monad-analytics=analytics.__main__:main",
        ],
    }
)
