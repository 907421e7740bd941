"""
Test suite for filter-zipper.

Unit tests cover pattern parsing, glob matching, directory selection and
archive writing; the facade, configuration and CLI tests exercise them
together against temporary directory trees.
"""
