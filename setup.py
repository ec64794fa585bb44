from setuptools import setup, find_packages


setup(
    name="ewbundle",
    version="0.1",
    packages=find_packages(include=["ewbundle", "ewbundle.*"]),
    description="Packaging, validation and checksums for EdgeWorkers code bundles.",
    author="vercingetorx",
    python_requires=">=3.8",
    install_requires=[
        "edgegrid-python>=1.2,<1.3",
        "requests>=2.25",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "ewbundle=ewbundle.cli:main",
        ]
    },
)
