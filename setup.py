"""Setup script for the Surfer package."""

from setuptools import setup, find_packages

requires = ["click>=6.2"]

__version__ = None
exec(open("src/surfer/version.py").read())

setup(
    name="surfer",
    version=__version__,
    package_dir={"": "src"},
    packages=find_packages("src", exclude=["test"]),
    include_package_data=True,
    install_requires=requires,
    extras_require={"test": ["pytest>=6.0"]},
    entry_points={"console_scripts": ["surfer = surfer.client:main"]},
)
