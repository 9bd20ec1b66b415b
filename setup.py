from setuptools import find_packages, setup

setup(
    name="prow-storage",
    version="0.1.0",
    packages=find_packages(
        include=[
            "prow_common",
            "prow_common.*",
            "prow_storage",
            "prow_storage.*",
            "prow_client",
            "prow_client.*",
        ]
    ),
    install_requires=[
        "requests>=2.31.0",
        "click>=8.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-xdist>=3.3.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "prow=prow_client.cli:main",
        ],
    },
    python_requires=">=3.11",
)
