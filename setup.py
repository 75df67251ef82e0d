#!/usr/bin/env python
import os
from typing import Any, Dict

from setuptools import find_packages, setup

here = os.path.abspath(os.path.dirname(__file__))


with open(os.path.join(here, "README.md"), "rt") as f:
    long_description = "\n" + f.read()


version_mod: Dict[str, Any] = {}
with open(os.path.join(here, "queue_backends", "__version__.py")) as f:
    exec(f.read(), version_mod)


setup(
    name="queue-backends",
    version=version_mod["__version__"],
    description="Provider-neutral queue backends with an Amazon SQS adapter",
    long_description=long_description,
    long_description_content_type="text/markdown",
    python_requires=">=3.8",
    packages=find_packages(exclude=["tests"]),
    install_requires=[
        "boto3",
        "attrs",
    ],
    extras_require={
        "test": [
            "pytest",
            "localstack-client",
        ],
    },
    include_package_data=True,
    license="MIT",
    classifiers=[
        # Trove classifiers
        # Full list: https://pypi.python.org/pypi?%3Aaction=list_classifiers
        "Development Status :: 4 - Beta",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
)
