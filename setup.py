"""
topicgraph - knowledge graph of study sessions
"""

from setuptools import setup, find_packages

setup(
    name="topicgraph",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.10",
    description="Incremental topic knowledge graph built from study sessions",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    license="MIT",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    install_requires=[
        "numpy>=1.24.0",
        "requests>=2.28.0",
        "click>=8.0.0",
        "pyyaml>=6.0",
        "filelock>=3.12",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "hypothesis>=6.0.0",
            "black>=23.0.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "topicgraph=topicgraph.cli:main",
        ],
    },
)
