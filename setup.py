# setup.py
from setuptools import setup, find_packages

setup(
    name='cruise_prediction',
    version='0.1.0',
    packages=find_packages(where='src'),
    package_dir={'': 'src'},
    install_requires=['numpy', 'torch', 'pyyaml'],
    extras_require={
        'test': ['pytest'],
    },
)
