import setuptools

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="seqalchemy",
    license='MIT',
    version='0.1.0',
    description="Partition-scoped identity columns for composite primary keys on SQL Server, built on sqlalchemy.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages('src'),
    package_dir={'': 'src'},
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Database",
    ],
    python_requires='>=3.10',
    install_requires=[
        'pandas>=1.5.0,<3',
        'sqlalchemy>=2.0.0',
        'numpy>=1.20.0',
        'tabulate>=0.8.0'
    ],
    extras_require={
        'mssql': ['pyodbc>=4.0.0'],
        'test': ['pytest>=7.0.0'],
    },
    entry_points={
        'console_scripts': [
            'seqalchemy = seqalchemy.cli:main',
        ]
    }
)
