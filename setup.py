from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="parallel-kmeans",
    version="0.1.0",
    author="Your Name",
    author_email="your.email@example.com",
    description="Parallel Lloyd's K-Means trainer with mutual-information evaluation",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/spencermcbridemoore/parallel-kmeans",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24.0",
        "scipy>=1.10.0",  # gammaln for expected mutual information
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "scikit-learn>=1.2.0",  # reference NMI/AMI values in tests
            "black>=22.0.0",
            "flake8>=5.0.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "parallel-kmeans=parallel_kmeans.cli:main",
        ],
    },
)
