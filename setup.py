from setuptools import setup, find_packages

setup(
    name="throttlepolicy",
    version="0.1.0",
    packages=find_packages(include=["throttle", "throttle.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
    ],
    extras_require={
        "test": ["pytest>=7.4"],
    },
)
