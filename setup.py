# setup.py
from setuptools import setup, find_packages

setup(
    name="amazonia_esn",
    version="0.1.0",
    description="Echo State Network ensembles forecasting the wet/dry season cycle of southern Amazonia",
    author="Kayode Olalere",
    author_email="kayode.olalere@example.com",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["run_experiments"],
    install_requires=[
        'numpy>=1.21.0',
        'scipy>=1.7.0',
        'matplotlib>=3.4.0',
        'pandas>=1.3.0',
        'pyyaml>=5.4',
        'rich>=10.0.0'
    ],
    extras_require={
        'test': ['pytest>=7.0']
    },
    entry_points={
        'console_scripts': ['amazonia-esn=run_experiments:main']
    },
    python_requires='>=3.8',
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ]
)
