from setuptools import setup, find_packages

setup(
    name="ledger_audit",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pandas",
        "requests",
        "PyYAML",
        "python-dotenv",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "ledger-audit=ledger_audit.cli:main",
        ],
    },
    author="Price Hatfield",
    description="A tool for auditing bank and payment exports against a ledger",
    python_requires=">=3.8",
)
