# !/usr/bin/env python

from setuptools import setup, find_packages

setup(
    name='jmap-client',
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
      'marshmallow>=3.18',
      'attrs>=21.3',
      'python-dotenv',
      'requests',
      'click>=8.0',
    ],
    extras_require={
      'test': ['pytest'],
    },
    entry_points={
      'console_scripts': [
        'jmap-client=jmapclient.cli:main',
      ],
    },
    python_requires='>=3.8',
    version='0.1.0',
    description='JMAP mail client for Python: batched method calls, back references, and sending email',
    license='BSD',
    keywords=['email', 'jmap'],
    classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'Natural Language :: English',
        'License :: OSI Approved :: BSD License',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: Implementation :: CPython',
        'Programming Language :: Python :: Implementation :: PyPy',
        'Topic :: Communications :: Email',
        'Topic :: Software Development',
    ],
)
