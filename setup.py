from setuptools import setup, find_packages

setup(
    name="ovs-unixctl",
    version="0.1.0",
    description="JSON-RPC client for the unixctl control socket of Open vSwitch daemons",
    author="ovs-unixctl developers",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "opentelemetry-api>=1.14.0",
        "opentelemetry-sdk>=1.14.0",
        "opentelemetry-exporter-otlp>=1.14.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-benchmark",
            "pytest-cov",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-benchmark",
            "pytest-cov",
            "black",
            "isort",
            "pylint",
        ],
    },
    entry_points={
        "console_scripts": [
            "ovs-unixctl=ovs_unixctl.cli:main",
        ],
    },
    python_requires=">=3.9",
)
