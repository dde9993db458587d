"""
make3dbrain - turn DICOM series, NIFTI volumes or FreeSurfer pial surfaces
into printable STL meshes of both cerebral hemispheres.
"""

__version__ = "0.1.0"
