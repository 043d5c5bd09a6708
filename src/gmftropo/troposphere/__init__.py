"""Tropospheric propagation models.

This implements the Global Mapping Function, which maps the propagation delay
of the electrically neutral atmosphere (mostly the troposphere and
stratosphere) from zenith to the line of sight of a ground station.
"""
