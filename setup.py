#!/usr/bin/env python

from setuptools import setup

setup(
    name="repostore",
    version="0.3.0",
    description="Content store for member photos and project files, backed by GitHub repositories",
    packages=["repostore", "repostore.api", "repostore.objectstorage"],
    include_package_data=True,
    zip_safe=False,
    keywords=["API", "storage", "github"],
    classifiers=[
        "License :: OSI Approved :: MIT License",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    ],
    python_requires=">=3.10",
    install_requires=[
        "fastapi",
        "httpx",
        "python-multipart",
        "python-dotenv",
        "pydantic>=2",
        "pydantic-settings",
        "uvicorn",
    ],
    extras_require={
        "dev": [
            "pytest",
            "pytest-httpx",
            "anyio",
            "mypy",
            "flake8",
            "pre-commit",
        ]
    },
    entry_points={"console_scripts": ["repostore = repostore.__main__:main"]},
)
