# setup.py
from setuptools import setup, find_packages

setup(
    name="param-schema",              # the *distribution* name on PyPI
    version="1.0.0",
    packages=find_packages(include=["param_schema", "param_schema.*"]),
    install_requires=["pandas"],      # backs the ``dataframe`` field type
    extras_require={"test": ["pytest"]},
    include_package_data=True,        # so we can bundle the JSON definitions
    package_data={
        "param_schema.schemas": ["*.json"],
    },
    description="Declarative parameter schemas: cast, validate and project untrusted input",
    author="Your Name",
    license="Creative Commons Attribution-NonCommercial-ShareAlike 4.0 International License",
)
