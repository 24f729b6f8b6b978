from setuptools import setup, find_packages


setup(
    name="agcpy",
    version="0.1",
    packages=find_packages(include=["agcpy", "agcpy.*"]),
    description="Read-only random access to AGC multi-genome archives through libagc.",
    author="vercingetorx",
    install_requires=[
        "cffi>=1.15.0",
    ],
)
