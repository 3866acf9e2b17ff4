#!/usr/bin/env python
# -*- coding: utf-8 -*-

from __future__ import print_function

import sys
import os

from setuptools import setup

import S3Engine.PkgInfo

if sys.version_info < (3, 8):
    sys.stderr.write("Your Python version %d.%d.%d is not supported.\n" % sys.version_info[:3])
    sys.stderr.write("S3Engine requires Python 3.8 or newer.\n")
    sys.exit(1)

## Remove 'MANIFEST' file to force
## distutils to recreate it.
## Only in "sdist" stage. Otherwise
## it makes life difficult to packagers.
if len(sys.argv) > 1 and sys.argv[1] == "sdist":
    try:
        os.unlink("MANIFEST")
    except OSError as e:
        pass

## Main distutils info
setup(
    ## Content description
    name=S3Engine.PkgInfo.package,
    version=S3Engine.PkgInfo.version,
    packages=['S3Engine'],
    scripts=['s3engine'],

    ## Packaging details
    author="Michal Ludvig",
    author_email="michal@logix.cz",
    maintainer="github.com/fviard, github.com/matteobar",
    maintainer_email="s3tools-bugs@lists.sourceforge.net",
    url=S3Engine.PkgInfo.url,
    license=S3Engine.PkgInfo.license,
    description=S3Engine.PkgInfo.short_description,
    long_description="""
%s

Authors:
--------
    Florent Viard <florent@sodria.com>

    Michal Ludvig  <michal@logix.cz>
""" % (S3Engine.PkgInfo.long_description),

    classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'Intended Audience :: System Administrators',
        'License :: OSI Approved :: GNU General Public License v2 or later (GPLv2+)',
        'Natural Language :: English',
        'Operating System :: OS Independent',
        'Operating System :: POSIX',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: System :: Archiving',
        'Topic :: Utilities',
    ],

    python_requires=">=3.8",
    install_requires=["python-dateutil", "python-magic"],
    extras_require={
        "test": ["pytest", "mock", "moto[server]", "boto3"],
    },
)

# vim:et:ts=4:sts=4:ai
