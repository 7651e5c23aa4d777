#!/usr/bin/python3
"""sqlbind installer."""

import os
import re
from setuptools import setup, find_packages

REQUIREMENTS = [
    'PyMySQL',
    'pytz'
]

def Description():
  """Returns the contents of the README.md file as description information."""
  with open(os.path.join(os.path.dirname(__file__), 'README.md')) as r_file:
    return r_file.read()


def Version():
  """Returns the version of the library as read from the __init__.py file"""
  main_lib = os.path.join(os.path.dirname(__file__), 'sqlbind', '__init__.py')
  with open(main_lib) as v_file:
    return re.match(".*__version__ = '(.*?)'", v_file.read(), re.S).group(1)


setup(
    name='sqlbind',
    version=Version(),
    description='SQL templates with optional fragments and result cursors for PyMySQL',
    long_description=Description(),
    long_description_content_type='text/markdown',
    license='ISC',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: ISC License (ISCL)',
        'Operating System :: POSIX :: Linux',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Topic :: Database',
    ],
    keywords='mysql sql template placeholder result cursor',
    packages=find_packages(exclude=('test', 'test.*')),
    include_package_data=True,
    install_requires=REQUIREMENTS,
    extras_require={'test': ['pytest']},
    python_requires='>=3.7')
