from setuptools import find_packages, setup

setup(
    name="ghassist",
    version="0.1.0",
    description="GitHub event normalization, actor gating and mode preparation for an AI coding assistant action",
    packages=find_packages(include=["ghassist", "ghassist.*"]),
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.4"],
    },
    entry_points={
        "console_scripts": [
            "ghassist=ghassist.cli:main",
        ],
    },
)
