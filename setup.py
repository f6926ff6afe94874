# setup.py
from setuptools import setup, find_packages

setup(
    name='portable-widgets',
    version='0.1.0',
    author='Ahmad Muhammad Bashir (RED X)',
    author_email='ambashir02@gmail.com',
    description='A widget manager that renders Jupyter-style widgets from host-supplied state and comm channels.',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',

    # Picks up `portable_widgets` and `portable_widgets_cli`.
    packages=find_packages(exclude=['tests', 'tests.*']),

    include_package_data=True,
    package_data={
        'portable_widgets': ['static/*.css'],
    },

    install_requires=[
        'PySide6',
        'typer',
        'PyYAML',
    ],
    extras_require={
        'test': ['pytest'],
    },

    entry_points={
        'console_scripts': [
            'portable-widgets = portable_widgets_cli.main:app',
        ],
    },

    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Intended Audience :: Developers',
        'Topic :: Software Development :: User Interfaces',
    ],
    python_requires='>=3.10',
)
