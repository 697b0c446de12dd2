#!/usr/bin/python3

from setuptools import setup

setup(
    name = 'vbb-decoder',
    version = '1.0.0',
    description = 'Decoder for Racelogic VBB vehicle telemetry logs',
    packages = ['vbb'],
    python_requires = '>=3.10',
    install_requires = ['numpy',
                        'dacite>=1.7'],
    extras_require = {'test': ['pytest>=7']},
    include_package_data = False,
)
