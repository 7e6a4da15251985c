#!/usr/bin/env python3

from setuptools import setup

setup(name='sszgen',
    version='0.1',
    packages=['sszgen'],
    scripts=['bin/sszgen'],
    python_requires='>=3.8',
    install_requires=[
        'lark',
        'black'
    ],
    extras_require={
        'test': ['pytest']
    },

    # Package metadata.
    description='SSZ encoding code generator for schema packages',
    license='BSD-3-Clause'
)
