from setuptools import setup, find_packages

setup(
    name="cavity_dynamics",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.21.0",
        "scipy>=1.7.0",
    ],
    extras_require={
        "dev": ["pytest", "black", "mypy", "pylint"],
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "cavity-dynamics=cavity_dynamics.__main__:main",
        ],
    },
    python_requires=">=3.8",
)
