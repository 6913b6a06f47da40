# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="relint",
    version="1.0.0",
    description="Static checker for regexps, skip sets and syntax strings in Emacs Lisp",
    packages=find_namespace_packages(include=["relint", "relint.*"]),
    python_requires=">=3.10",
    extras_require={
        "test": ["pytest", "hypothesis"],
    },
    entry_points={
        "console_scripts": ["relint=relint.cli:main"],
    },
    zip_safe=False,
)
