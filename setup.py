"""
Setup file.
"""

import os

from setuptools import find_packages, setup

URL = "https://github.com/groovyd/groovyd"
KEYWORDS = "groovy groovyc compiler jvm build incremental external-compiler"
HERE = os.path.dirname(os.path.abspath(__file__))


def read_version() -> str:
    with open(os.path.join(HERE, "src", "groovyd", "__init__.py"), encoding="utf-8") as f:
        for line in f:
            if line.startswith("__version__"):
                return line.split("=", 1)[1].strip().strip('"')
    raise RuntimeError("Unable to find __version__")


if __name__ == "__main__":
    setup(
        name="groovyd",
        version=read_version(),
        description="External Groovy compiler driver",
        keywords=KEYWORDS,
        url=URL,
        python_requires=">=3.9",
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        install_requires=["psutil"],
        extras_require={"test": ["pytest"]},
        entry_points={"console_scripts": ["groovyd=groovyd.cli:main"]},
        include_package_data=True)
