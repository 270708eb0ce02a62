#!/usr/bin/env python

from setuptools import setup

setup(
    name="flatdrive",
    version="0.3.0",
    description="Folders and files on top of a flat record store, for users authenticated with published signing keys",
    packages=["flatdrive", "flatdrive.api", "flatdrive.auth", "flatdrive.store"],
    include_package_data=True,
    zip_safe=False,
    python_requires=">=3.11",
    keywords=["API", "files", "storage"],
    classifiers=[
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    ],
    install_requires=[
        "fastapi",
        "elasticsearch[async]~=8.6",
        "python-dotenv",
        "httpx",
        "authlib",
        "pydantic>=2",
        "pydantic-settings",
        "typing-extensions",
        "uvicorn",
        "aiobotocore",
        "types-aiobotocore-s3",
        "async-lru",
    ],
    extras_require={
        "dev": [
            "pytest",
            "anyio",
            "pytest-httpx",
            "mypy",
            "flake8",
            "pre-commit",
        ]
    },
    entry_points={"console_scripts": ["flatdrive = flatdrive.__main__:main"]},
)
