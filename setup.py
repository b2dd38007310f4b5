"""Setup featcount package

"""

from setuptools import find_packages, setup

setup(
    name='featcount',
    version='1.0.0',
    description='HTSeq-count compatible read counting per genomic feature',
    license='MIT',
    python_requires='>=3.9',
    packages=find_packages(include=['featcount', 'featcount.*']),
    install_requires=[
        'pysam>=0.21',
        'intervaltree>=3.1',
        'pandas>=1.5',
        'PyYAML>=6.0',
    ],
    extras_require={
        'test': ['pytest>=7'],
    },
    entry_points={
        'console_scripts': [
            'featcount = featcount.__main__:main',
        ],
    },
)
