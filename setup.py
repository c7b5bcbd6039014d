#!/usr/bin/env python3
from os.path import dirname
from setuptools import setup

with open(dirname(__file__) + "/README.rst", "r") as fd:
    readme = fd.read()

setup(
    name="awssigauth",
    version="0.1.0",
    packages=["awssigauth", "awssigauth.backends"],
    install_requires=["pytz"],
    python_requires=">=3.8",

    # PyPI information
    description="AWS signature V2/V4 request authentication for "
                "S3-compatible services",
    long_description=readme,
    long_description_content_type="text/x-rst",
    license="Apache 2.0",
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: Apache Software License',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Topic :: Software Development :: Libraries :: Python Modules',
    ],
    keywords = ['aws', 'signature', 'aws-sigv2', 'aws-sigv4', 's3'],
    zip_safe=False,
)
