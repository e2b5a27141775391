from setuptools import setup, find_packages

setup(
    name='eosfit',
    version='0.3',
    description='Equations of state for solids: evaluation, fitting and volume inversion',
    author='David Holec',
    author_email='david.holec@unileoben.ac.at',
    license='MIT',
    packages=find_packages('.', exclude=['tests', 'tests.*']),
    include_package_data=True,
    install_requires=[
        'numpy',
        'scipy',
        'ase',
        'pyyaml'
    ],
    extras_require={
        'test': [
            'pytest'
        ]
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.8',
    long_description=(
        'Closed-form equations of state (Birch-Murnaghan, Vinet, Poirier-Tarantola, ...) '
        'with unit-aware nonlinear least-squares fitting and numerical volume inversion.'
    ),
)
