#!/usr/bin/env python3

import os
import re

from setuptools import setup


def read(fname):
    with open(os.path.join(os.path.dirname(__file__), fname)) as f:
        return f.read()


def version():
    match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]", read("pathpatch/__init__.py"), re.M)
    if not match:
        raise RuntimeError("failed to parse version")
    return match.group(1)


install_requires = [
    "iso8601 >= 1.0.2",
    "wrapt >= 1.14.0",
]

extras_require = {
    "test": [
        "pytest >= 7.0",
    ],
}

classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "License :: OSI Approved :: Mozilla Public License 2.0 (MPL 2.0)",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

setup(
    name="pathpatch",
    version=version(),
    description="Apply partial modifications, addressed by key paths, to typed values.",
    long_description=read("README.rst"),
    long_description_content_type="text/x-rst",
    license="Mozilla Public License 2.0",
    classifiers=classifiers,
    packages=["pathpatch"],
    python_requires=">= 3.10",
    install_requires=install_requires,
    extras_require=extras_require,
    keywords="patch json dataclass key path",
)
