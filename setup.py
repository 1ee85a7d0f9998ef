from setuptools import setup, find_packages


setup(
    name="mar",
    version="0.1",
    packages=find_packages(include=["mar", "mar.*"]),
    description="Reader/writer for the legacy MAR (MSN Archive) container format.",
    author="vercingetorx",
    install_requires=[],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "mar=mar.cli:main",
        ]
    },
)
