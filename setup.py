from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="parity-harness",
    version="0.4.0",
    author="Seppo Pakonen",
    author_email="seppo.pakonen@gmail.com",
    description="Parity - differential testing and failure minimization for source-to-source translators",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "parity.oracles": ["sandbox_driver.js"],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Testing",
    ],
    python_requires=">=3.9",
    entry_points={
        "console_scripts": [
            "parity=parity:main",
        ],
    },
    install_requires=[
        "toml>=0.10.0",
        "pyfiglet>=0.8.0",
        "textual>=0.40.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "hypothesis>=6.0",
        ],
    },
)
