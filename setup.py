"""Setup file and install script for SNPRecal.
"""
import os
import re

from setuptools import setup, find_packages
from setuptools.command.sdist import sdist as _sdist
from setuptools.command.install import install as _install

DESCRIPTION = "SNPRecal: Variant quality score recalibration for SNV calls."
DISTNAME = 'snprecal'
LICENSE = 'BSD (3-clause)'

ROOT_DIR = os.path.split(os.path.realpath(__file__))[0]


def get_version():
    try:
        f = open(ROOT_DIR + "/snprecal/_version.py")
    except EnvironmentError:
        return None

    with f:
        for line in f.readlines():
            mo = re.match("__version__ = '([^']+)'", line)
            if mo:
                return mo.group(1)

    return None


class sdist(_sdist):

    def run(self):
        self.distribution.metadata.version = get_version()
        return _sdist.run(self)


class install(_install):

    def run(self):
        self.distribution.metadata.version = get_version()
        _install.run(self)
        return


if __name__ == "__main__":

    setup(
        name=DISTNAME,
        version=get_version(),
        description=DESCRIPTION,
        license=LICENSE,
        packages=find_packages(exclude=['tests', 'tests.*']),
        include_package_data=True,
        cmdclass={'sdist': sdist, 'install': install},
        python_requires='>=3.7',
        install_requires=[
            'Logbook>=1.4.3',
            'numpy>=1.15.4',
            'scikit-learn>=1.0',
            'scipy>=1.1.0',
            'pysam>=0.15.2'
        ],
        extras_require={
            'test': ['pytest>=6.0'],
        },
        entry_points={

            'console_scripts': [
                'snprecal = snprecal.runner:main'
            ]
        },
        classifiers=[
            'Intended Audience :: Science/Research',
            'Programming Language :: Python :: 3',
            'License :: OSI Approved :: BSD License',
            'Topic :: Scientific/Engineering :: Bio-Informatics',
            'Operating System :: POSIX',
            'Operating System :: POSIX :: Linux',
            'Operating System :: MacOS']
    )
