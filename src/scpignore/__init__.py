"""
scpignore - copy a directory tree over scp, minus ignored paths.

This package walks a source tree, drops every path matched by the
patterns in a ``.scpignore`` file, and hands the surviving files and
empty directories to ``scp`` one at a time so each transfer is reported
on its own.
"""

__version__ = "0.1.0"
__author__ = "scpignore Team"
