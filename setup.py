#!/usr/bin/env python

import os
import re
from setuptools import setup

version_file = os.path.join('body_parser', '_version.py')
with open(version_file, 'rb') as f:
    version_data = f.read().strip().decode('ascii')

version_re = re.compile(r'((?:\d+)\.(?:\d+)\.(?:\d+))')
version = version_re.search(version_data).group(0)

tests_require = [
    'pytest',
    'pytest-cov',
    'pytest-timeout',
    'PyYAML'
]

setup(name='python-body-parser',
      version=version,
      description='Request body readers with size limits and a simple multipart decoder',
      license='Apache',
      platforms='any',
      zip_safe=False,
      extras_require={
          'test': tests_require,
          'dev': tests_require + ['invoke', 'atheris'],
      },
      packages=[
          'body_parser',
      ],
      python_requires='>=3.8',
      classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Web Environment',
        'Framework :: AsyncIO',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: Apache Software License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3 :: Only',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Internet :: WWW/HTTP',
        'Topic :: Software Development :: Libraries :: Python Modules'
      ],
     )
