#!/usr/bin/env python
from pathlib import Path

from setuptools import setup, find_packages

from dicom_spec_extractor import __version__

EXTRA = {
    "extras_require": {
        "test": ["pytest", "pyfakefs"],
    },
}

BASE_PATH = Path(__file__).parent.absolute()
with open(BASE_PATH / 'README.md') as f:
    long_description = f.read()


setup(
    name="dicom-spec-extractor",
    packages=find_packages(),
    include_package_data=True,
    version=__version__,
    install_requires=['pydicom', 'lxml'],
    python_requires=">=3.10",
    description="Extracts DICOM dictionary information from DICOM specs "
                "in docbook format",
    keywords="dicom python",
    entry_points={
        'console_scripts': [
            'extract_dicom_dict=dicom_spec_extractor.extract_dictionary:main',
        ]
    },
    classifiers=[
        "License :: OSI Approved :: MIT License",
        "Intended Audience :: Developers",
        "Intended Audience :: Healthcare Industry",
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: POSIX :: Linux",
        'Operating System :: MacOS',
        "Operating System :: Microsoft :: Windows",
        "Topic :: Scientific/Engineering :: Medical Science Apps.",
    ],
    long_description=long_description,
    long_description_content_type='text/markdown',
    **EXTRA
)
