from setuptools import setup, find_packages

setup(
    name="MergePath",
    version="0.1.0",
    description="Path pattern matching and path merging on a Pregel BSP executor",
    packages=find_packages(exclude=["tests", "samples"]),
    install_requires=["numpy", "pandas"],
    extras_require={"test": ["pytest"]},
    python_requires=">=3.8",
    include_package_data=True,
)
