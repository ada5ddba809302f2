from setuptools import setup, find_packages

setup(
    name="pybuildj",
    description="Build rule pipeline for Java and dex jars",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    keywords=["java", "dex", "ninja"],
    python_requires=">=3.11",
    packages=find_packages(include=["pybuildj", "pybuildj.*"]),
    install_requires=[
        "returns>=0.19",
        "toml>=0.10",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "pybuildj = pybuildj.main:main",
        ]
    },
    setup_requires=[
        "setuptools>=42",
        "setuptools_scm>=3.5",
    ],
    use_scm_version={"fallback_version": "0.1.0"},
)
