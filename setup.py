"""
Beanstalk Deployer - push a project folder to AWS Elastic Beanstalk
"""
from setuptools import find_packages, setup

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="beanstalk-deployer",
    version="0.1.0",
    description="Hash, bundle, upload and launch a project on AWS Elastic Beanstalk",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["core", "core.*", "deployment", "deployment.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: System :: Software Distribution",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.11",
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.4",
            "moto[s3]>=5.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "beanstalk-deploy=core.cli:main",
        ],
    },
)
