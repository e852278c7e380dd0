"""
Setup configuration for chaos-mesh-sdk library.

This library provides an async client for Chaos Mesh experiments and their events.
"""

from setuptools import setup, find_packages

setup(
    name="chaos-mesh-sdk",
    version="0.1.0",
    description="Async client for Chaos Mesh experiments on Kubernetes",
    author="Chaos Mesh SDK Team",
    packages=find_packages(include=["chaos_mesh_sdk", "chaos_mesh_sdk.*"]),
    python_requires=">=3.11",
    install_requires=[
        "kubernetes_asyncio>=29.0.0",
        "structlog>=23.1.0",
        "opentelemetry-api>=1.21.0",
        "pydantic>=2.4.0",
        "pydantic-settings>=2.0.0",
        "prometheus-client>=0.17.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "chaos-mesh-sdk=chaos_mesh_sdk.cli:main",
        ]
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
