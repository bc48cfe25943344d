#!/usr/bin/env python3

from setuptools import setup, find_packages

setup(name='PluginHost',
    version='0.1.0',
    packages=find_packages(include=['plugin_host', 'plugin_host.*']),
    description='remote plugin host for editor rpc clients',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    python_requires='>=3.8',
    install_requires=[
        'anyconfig',
        'pyyaml',
        'pydantic>=2',
    ],
    extras_require={
        'test': [
            'pytest<9',
            'pytest-asyncio',
        ],
    },
    entry_points={
        'console_scripts': [
            'plugin-host=plugin_host.__main__:main',
        ],
    },
    )
