"""
Setup script for the Cost Report Orchestrator package.

This package provides the query resolution and caching engine, the
deferred report processor and the AWS adapters behind the cost
reporting Lambda functions.
"""
from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="cost-report-orchestrator",
    version="1.0.0",
    author="Cost Reporting Team",
    description="Natural-language AWS cost reports with caching and deferred delivery",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Office/Business :: Financial",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.11",
    install_requires=[
        # AWS SDK
        "boto3>=1.28.85",
        "botocore>=1.31.85",

        # PDF reports
        "matplotlib>=3.8.0",
    ],
    extras_require={
        "dev": [
            # Testing
            "pytest>=7.4.3",
            "pytest-cov>=4.1.0",
            "moto>=5.0.0",

            # Code quality
            "black>=23.11.0",
            "flake8>=6.1.0",
            "mypy>=1.7.1",

            # Type stubs
            "boto3-stubs[dynamodb,ce,bedrock-runtime,s3,ses,events,ssm-incidents]>=1.28.85",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
